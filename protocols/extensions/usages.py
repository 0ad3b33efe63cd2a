"""
Key Usage / Extended Key Usage Registry

Static, read-only tables mapping symbolic usage names to KeyUsageFlag bits
and extended key usage purposes to their object identifiers. The tables are
built once, on first use, and exposed through read-only mappings, so lookups
are safe from any number of concurrent callers.

Lookups are case-insensitive: both the canonical and the lower-cased name
are stored.

Standards Reference:
- RFC 5280 Section 4.2.1.3 (Key Usage) and 4.2.1.12 (Extended Key Usage)

Author: SecureRoad PKI Project
Date: October 2025
"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from cryptography.x509.oid import ExtendedKeyUsageOID

from protocols.core.errors import UnknownUsageError
from protocols.core.types import ExtKeyUsage, KeyUsageFlag


# ============================================================================
# STATIC TABLES
# ============================================================================

# Canonical key usage names, in bit order
_KEY_USAGES = (
    ("DigitalSignature", KeyUsageFlag.DIGITAL_SIGNATURE),
    ("ContentCommitment", KeyUsageFlag.CONTENT_COMMITMENT),
    ("KeyEncipherment", KeyUsageFlag.KEY_ENCIPHERMENT),
    ("DataEncipherment", KeyUsageFlag.DATA_ENCIPHERMENT),
    ("KeyAgreement", KeyUsageFlag.KEY_AGREEMENT),
    ("CertSign", KeyUsageFlag.CERT_SIGN),
    ("CRLSign", KeyUsageFlag.CRL_SIGN),
    ("EncipherOnly", KeyUsageFlag.ENCIPHER_ONLY),
    ("DecipherOnly", KeyUsageFlag.DECIPHER_ONLY),
)

_EXT_KEY_USAGE_OIDS = (
    (ExtKeyUsage.ANY, ExtendedKeyUsageOID.ANY_EXTENDED_KEY_USAGE.dotted_string),
    (ExtKeyUsage.SERVER_AUTH, ExtendedKeyUsageOID.SERVER_AUTH.dotted_string),
    (ExtKeyUsage.CLIENT_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH.dotted_string),
    (ExtKeyUsage.CODE_SIGNING, ExtendedKeyUsageOID.CODE_SIGNING.dotted_string),
    (ExtKeyUsage.EMAIL_PROTECTION, ExtendedKeyUsageOID.EMAIL_PROTECTION.dotted_string),
    (ExtKeyUsage.IPSEC_END_SYSTEM, "1.3.6.1.5.5.7.3.5"),
    (ExtKeyUsage.IPSEC_TUNNEL, "1.3.6.1.5.5.7.3.6"),
    (ExtKeyUsage.IPSEC_USER, "1.3.6.1.5.5.7.3.7"),
    (ExtKeyUsage.TIME_STAMPING, ExtendedKeyUsageOID.TIME_STAMPING.dotted_string),
    (ExtKeyUsage.OCSP_SIGNING, ExtendedKeyUsageOID.OCSP_SIGNING.dotted_string),
    (ExtKeyUsage.MICROSOFT_SERVER_GATED_CRYPTO, "1.3.6.1.4.1.311.10.3.3"),
    (ExtKeyUsage.NETSCAPE_SERVER_GATED_CRYPTO, "2.16.840.1.113730.4.1"),
    (ExtKeyUsage.MICROSOFT_COMMERCIAL_CODE_SIGNING, "1.3.6.1.4.1.311.2.1.22"),
    (ExtKeyUsage.MICROSOFT_KERNEL_CODE_SIGNING, "1.3.6.1.4.1.311.61.1.1"),
)


@dataclass(frozen=True)
class UsageRegistry:
    """Immutable lookup tables for key usages and extended key usages."""

    key_usages: Mapping[str, KeyUsageFlag]
    ext_key_usages: Mapping[str, ExtKeyUsage]
    ext_key_usage_to_oid: Mapping[ExtKeyUsage, str]
    oid_to_ext_key_usage: Mapping[str, ExtKeyUsage]
    known_key_usages: Tuple[str, ...]
    known_ext_key_usages: Tuple[str, ...]


@lru_cache(maxsize=1)
def get_usage_registry() -> UsageRegistry:
    """Build the registry on first call; later calls return the same instance."""
    key_usages = {}
    for name, flag in _KEY_USAGES:
        key_usages[name] = flag
        key_usages[name.lower()] = flag

    ext_key_usages = {}
    for usage, _ in _EXT_KEY_USAGE_OIDS:
        ext_key_usages[usage.value] = usage
        ext_key_usages[usage.value.lower()] = usage

    to_oid = dict(_EXT_KEY_USAGE_OIDS)
    from_oid = {oid: usage for usage, oid in _EXT_KEY_USAGE_OIDS}

    return UsageRegistry(
        key_usages=MappingProxyType(key_usages),
        ext_key_usages=MappingProxyType(ext_key_usages),
        ext_key_usage_to_oid=MappingProxyType(to_oid),
        oid_to_ext_key_usage=MappingProxyType(from_oid),
        known_key_usages=tuple(name for name, _ in _KEY_USAGES),
        known_ext_key_usages=tuple(usage.value for usage, _ in _EXT_KEY_USAGE_OIDS),
    )


# ============================================================================
# KEY USAGE
# ============================================================================


def parse_key_usage(name: str) -> KeyUsageFlag:
    """
    Parse a key usage name (e.g. "DigitalSignature", "certsign").

    Raises:
        UnknownUsageError: If the name is not a known key usage
    """
    registry = get_usage_registry()
    usage = registry.key_usages.get(str(name).strip())
    if usage is None:
        usage = registry.key_usages.get(str(name).strip().lower())
    if usage is None:
        raise UnknownUsageError(name)
    return usage


def parse_key_usages(names: Iterable[str]) -> KeyUsageFlag:
    """Combine several key usage names into one bitmask."""
    value = KeyUsageFlag(0)
    for name in names:
        value |= parse_key_usage(name)
    return value


def list_key_usages() -> List[str]:
    """Canonical key usage names, in bit order."""
    return list(get_usage_registry().known_key_usages)


def key_usage_names(value: int) -> List[str]:
    """Canonical names of the bits set in a key usage bitmask."""
    return [name for name, flag in _KEY_USAGES if value & flag]


# ============================================================================
# EXTENDED KEY USAGE
# ============================================================================


def parse_ext_key_usage(name: Union[str, ExtKeyUsage]) -> ExtKeyUsage:
    """
    Parse an extended key usage purpose name (e.g. "ServerAuth", "any").

    Raises:
        UnknownUsageError: If the name is not a known purpose
    """
    if isinstance(name, ExtKeyUsage):
        return name
    registry = get_usage_registry()
    text = str(name).strip()
    usage = registry.ext_key_usages.get(text) or registry.ext_key_usages.get(text.lower())
    if usage is None:
        raise UnknownUsageError(name, extended=True)
    return usage


def list_ext_key_usages() -> List[str]:
    """Canonical extended key usage names, in table order."""
    return list(get_usage_registry().known_ext_key_usages)


def ext_key_usage_to_oid(purpose: Union[str, ExtKeyUsage]) -> Optional[str]:
    """
    Object identifier of an extended key usage purpose.

    Returns:
        Dotted OID, or None when the purpose has no known mapping
    """
    try:
        usage = parse_ext_key_usage(purpose)
    except UnknownUsageError:
        return None
    return get_usage_registry().ext_key_usage_to_oid.get(usage)


def oid_to_ext_key_usage(oid: str) -> Optional[ExtKeyUsage]:
    """
    Extended key usage purpose of an object identifier.

    Returns:
        ExtKeyUsage, or None when the OID is not a known purpose
    """
    return get_usage_registry().oid_to_ext_key_usage.get(str(oid))


def resolve_ext_key_usages(
    purposes: Iterable[Union[str, ExtKeyUsage]],
) -> Tuple[List[str], List[str]]:
    """
    Resolve purposes to OIDs, keeping input order.

    Returns:
        (oids, dropped): resolved OIDs and the purposes with no known mapping
    """
    oids = []
    dropped = []
    for purpose in purposes:
        oid = ext_key_usage_to_oid(purpose)
        if oid is None:
            dropped.append(purpose.value if isinstance(purpose, ExtKeyUsage) else str(purpose))
            continue
        oids.append(oid)
    return oids, dropped
