"""
X.509 Extension Codec - ASN.1 DER Implementation

Encodes and decodes the extensions the issuance core understands to/from
the generic ExtensionRecord (object identifier + criticality + DER value):

- Basic Constraints (2.5.29.19)
- Key Usage (2.5.29.15)
- Extended Key Usage (2.5.29.37)
- Certificate Template Name (1.3.6.1.4.1.311.20.2)
- Subject Alternative Name (2.5.29.17)

unmarshal() is strict: a record with a different object identifier, or with
bytes left over after the value, is rejected. decode_extension() is the
lenient entry point used when rebuilding a certificate from a request.

Standards: RFC 5280 Section 4.2, ITU-T X.690 (DER)

Author: SecureRoad PKI Project
Date: October 2025
"""

import ipaddress
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import asn1tools

from protocols.core.errors import (
    DecodingError,
    EncodingError,
    TrailingBytesError,
    WrongObjectIdentifierError,
)
from protocols.core.types import (
    ALL_KEY_USAGES,
    OID_BASIC_CONSTRAINTS,
    OID_CERTIFICATE_TEMPLATE_NAME,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_SUBJECT_ALTERNATIVE_NAME,
    ExtensionRecord,
    ExtKeyUsage,
    KeyUsageFlag,
)
from protocols.extensions.usages import oid_to_ext_key_usage, resolve_ext_key_usages
from utils.logger import PKILogger

logger = PKILogger.get_logger("ExtensionCodec")

# ASN.1 schema compilation
EXTENSIONS_SCHEMA = Path(__file__).parent / "x509_extensions.asn"

asn1_compiler = asn1tools.compile_files([str(EXTENSIONS_SCHEMA)], codec="der")

_OID_PATTERN = re.compile(r"^[0-2](\.(0|[1-9][0-9]*))+$")
# X.680 PrintableString alphabet
_PRINTABLE_PATTERN = re.compile(r"^[A-Za-z0-9 '()+,\-./:=?]+$")


# ============================================================================
# DER HELPERS
# ============================================================================


def _encode(type_name: str, data: Any, oid: str, critical: bool) -> ExtensionRecord:
    try:
        value = asn1_compiler.encode(type_name, data)
    except (asn1tools.Error, ValueError, TypeError) as e:
        raise EncodingError(f"cannot encode {type_name}: {e}") from e
    return ExtensionRecord(oid=oid, critical=critical, value=bytes(value))


def _decode(type_name: str, record: ExtensionRecord, expected_oid: str) -> Any:
    if record.oid != expected_oid:
        raise WrongObjectIdentifierError(expected_oid, record.oid)

    try:
        decoded, length = asn1_compiler.decode_with_length(type_name, record.value)
    except (asn1tools.Error, ValueError, TypeError, IndexError) as e:
        raise DecodingError(f"cannot decode {type_name}: {e}") from e

    if length < len(record.value):
        raise TrailingBytesError(record.oid, len(record.value) - length)
    return decoded


def _key_usage_to_bit_string(value: int) -> Tuple[bytes, int]:
    # Named bit n is the n-th most significant bit of the string
    number_of_bits = value.bit_length()
    data = bytearray((number_of_bits + 7) // 8)
    for bit in range(number_of_bits):
        if value & (1 << bit):
            data[bit // 8] |= 0x80 >> (bit % 8)
    return bytes(data), number_of_bits


def _bit_string_to_key_usage(data: bytes, number_of_bits: int) -> int:
    value = 0
    number_of_bits = min(number_of_bits, len(data) * 8, ALL_KEY_USAGES.bit_length())
    for bit in range(number_of_bits):
        if data[bit // 8] & (0x80 >> (bit % 8)):
            value |= 1 << bit
    return value


# ============================================================================
# EXTENSIONS
# ============================================================================


@dataclass(frozen=True)
class BasicConstraintsExtension:
    """
    Basic Constraints (RFC 5280 Section 4.2.1.9).

    Attributes:
        is_ca: Whether the subject may issue certificates
        max_path_len: Maximum number of subordinate CAs (None = unconstrained)
        critical: Criticality flag
    """

    OID = OID_BASIC_CONSTRAINTS
    ASN1_TYPE = "BasicConstraints"

    is_ca: bool = False
    max_path_len: Optional[int] = None
    critical: bool = True

    def marshal(self) -> ExtensionRecord:
        if self.max_path_len is not None and self.max_path_len < 0:
            raise EncodingError(f"path length must be non-negative: {self.max_path_len}")

        data = {}
        # DER omits a DEFAULT value
        if self.is_ca:
            data["cA"] = True
        if self.max_path_len is not None:
            data["pathLenConstraint"] = self.max_path_len
        return _encode(self.ASN1_TYPE, data, self.OID, self.critical)

    @classmethod
    def unmarshal(cls, record: ExtensionRecord) -> "BasicConstraintsExtension":
        decoded = _decode(cls.ASN1_TYPE, record, cls.OID)
        return cls(
            is_ca=bool(decoded.get("cA", False)),
            max_path_len=decoded.get("pathLenConstraint"),
            critical=record.critical,
        )


@dataclass(frozen=True)
class KeyUsageExtension:
    """Key Usage (RFC 5280 Section 4.2.1.3) as a KeyUsageFlag bitmask."""

    OID = OID_KEY_USAGE
    ASN1_TYPE = "KeyUsage"

    value: int = 0
    critical: bool = True

    def marshal(self) -> ExtensionRecord:
        if self.value < 0 or self.value & ~ALL_KEY_USAGES:
            raise EncodingError(f"key usage bitmask out of range: {self.value:#x}")
        # RFC 5280 4.2.1.3: encipherOnly/decipherOnly qualify keyAgreement
        only_bits = KeyUsageFlag.ENCIPHER_ONLY | KeyUsageFlag.DECIPHER_ONLY
        if self.value & only_bits and not self.value & KeyUsageFlag.KEY_AGREEMENT:
            raise EncodingError("encipher only and decipher only require key agreement")
        return _encode(
            self.ASN1_TYPE, _key_usage_to_bit_string(int(self.value)), self.OID, self.critical
        )

    @classmethod
    def unmarshal(cls, record: ExtensionRecord) -> "KeyUsageExtension":
        data, number_of_bits = _decode(cls.ASN1_TYPE, record, cls.OID)
        return cls(
            value=KeyUsageFlag(_bit_string_to_key_usage(data, number_of_bits)),
            critical=record.critical,
        )


@dataclass(frozen=True)
class ExtendedKeyUsageExtension:
    """
    Extended Key Usage (RFC 5280 Section 4.2.1.12).

    Carries purpose object identifiers. Use from_purposes() to build it from
    purpose names: names without a known OID are dropped, not rejected.
    """

    OID = OID_EXTENDED_KEY_USAGE
    ASN1_TYPE = "ExtKeyUsageSyntax"

    oids: Tuple[str, ...] = field(default_factory=tuple)
    critical: bool = False

    def __post_init__(self):
        object.__setattr__(self, "oids", tuple(str(oid) for oid in self.oids))

    @classmethod
    def from_purposes(
        cls, purposes: Iterable[Union[str, ExtKeyUsage]], critical: bool = False
    ) -> "ExtendedKeyUsageExtension":
        oids, dropped = resolve_ext_key_usages(purposes)
        if dropped:
            logger.debug(f"Dropped extended key usages without a known OID: {dropped}")
        return cls(oids=tuple(oids), critical=critical)

    def purposes(self) -> list:
        """Known purposes of this extension, in order; unknown OIDs are skipped."""
        result = []
        for oid in self.oids:
            usage = oid_to_ext_key_usage(oid)
            if usage is not None:
                result.append(usage)
        return result

    def marshal(self) -> ExtensionRecord:
        if not self.oids:
            raise EncodingError("no extended key usage specified")
        for oid in self.oids:
            if not _OID_PATTERN.match(oid):
                raise EncodingError(f"malformed object identifier: {oid!r}")
        return _encode(self.ASN1_TYPE, list(self.oids), self.OID, self.critical)

    @classmethod
    def unmarshal(cls, record: ExtensionRecord) -> "ExtendedKeyUsageExtension":
        decoded = _decode(cls.ASN1_TYPE, record, cls.OID)
        return cls(oids=tuple(decoded), critical=record.critical)


@dataclass(frozen=True)
class CertificateTemplateExtension:
    """
    Certificate template name (1.3.6.1.4.1.311.20.2).

    Some private CAs (i.e. ADCS) use it to pick the issuance profile.
    """

    OID = OID_CERTIFICATE_TEMPLATE_NAME
    ASN1_TYPE = "CertificateTemplateName"

    name: str = ""
    critical: bool = False

    def marshal(self) -> ExtensionRecord:
        if not self.name:
            raise EncodingError("no certificate type specified")
        if not _PRINTABLE_PATTERN.match(self.name):
            raise EncodingError(f"certificate template name is not a PrintableString: {self.name!r}")
        return _encode(self.ASN1_TYPE, self.name, self.OID, self.critical)

    @classmethod
    def unmarshal(cls, record: ExtensionRecord) -> "CertificateTemplateExtension":
        decoded = _decode(cls.ASN1_TYPE, record, cls.OID)
        return cls(name=decoded, critical=record.critical)


@dataclass(frozen=True)
class SubjectAltNameExtension:
    """
    Subject Alternative Name (RFC 5280 Section 4.2.1.6).

    Only the categories the core issues are kept: DNS names, email
    addresses, IP addresses and URIs. Other alternatives are ignored on
    decode, as are IP addresses that are neither 4 nor 16 bytes long.
    """

    OID = OID_SUBJECT_ALTERNATIVE_NAME
    ASN1_TYPE = "SubjectAltName"

    dns_names: Tuple[str, ...] = ()
    email_addresses: Tuple[str, ...] = ()
    ip_addresses: Tuple[Union[ipaddress.IPv4Address, ipaddress.IPv6Address], ...] = ()
    uris: Tuple[str, ...] = ()
    critical: bool = False

    def marshal(self) -> ExtensionRecord:
        names: List[Tuple[str, Any]] = []
        names.extend(("dNSName", name) for name in self.dns_names)
        names.extend(("rfc822Name", email) for email in self.email_addresses)
        names.extend(("iPAddress", ip.packed) for ip in self.ip_addresses)
        names.extend(("uniformResourceIdentifier", uri) for uri in self.uris)
        if not names:
            raise EncodingError("no subject alternative name specified")
        return _encode(self.ASN1_TYPE, names, self.OID, self.critical)

    @classmethod
    def unmarshal(cls, record: ExtensionRecord) -> "SubjectAltNameExtension":
        decoded = _decode(cls.ASN1_TYPE, record, cls.OID)

        dns_names, email_addresses, ip_addresses, uris = [], [], [], []
        for kind, value in decoded:
            if kind == "dNSName":
                dns_names.append(value)
            elif kind == "rfc822Name":
                email_addresses.append(value)
            elif kind == "uniformResourceIdentifier":
                uris.append(value)
            elif kind == "iPAddress":
                if len(value) in (4, 16):
                    ip_addresses.append(ipaddress.ip_address(bytes(value)))
                else:
                    logger.debug(f"Ignoring IP address SAN of {len(value)} bytes")

        return cls(
            dns_names=tuple(dns_names),
            email_addresses=tuple(email_addresses),
            ip_addresses=tuple(ip_addresses),
            uris=tuple(uris),
            critical=record.critical,
        )


KNOWN_EXTENSIONS = (
    BasicConstraintsExtension,
    KeyUsageExtension,
    ExtendedKeyUsageExtension,
    CertificateTemplateExtension,
)


def decode_extension(record: ExtensionRecord, kinds: Sequence[type] = KNOWN_EXTENSIONS):
    """
    Decode a record against each known extension kind in turn.

    Returns:
        The decoded extension, or None when the OID is unknown or the
        value does not decode
    """
    for kind in kinds:
        if record.oid != kind.OID:
            continue
        try:
            return kind.unmarshal(record)
        except DecodingError as e:
            logger.debug(f"Skipping malformed extension {record.oid}: {e}")
            return None
    return None
