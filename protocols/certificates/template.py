"""
Certificate Template Deriver

Rebuilds a signable certificate template from a parsed certificate signing
request: subject, public key and SAN lists are copied, and the requested
extensions are decoded back into typed fields. Serial number and validity
window come from the signer's SigningParameters, never from the request.

Decoding here is lenient: unknown extensions and extensions that fail to
decode are skipped, not rejected.

Author: SecureRoad PKI Project
Date: October 2025
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from protocols.certificates.request import CertificateRequest, IPAddress
from protocols.certificates.validity import (
    Authority,
    certificate_not_after,
    certificate_not_before,
)
from protocols.core.types import (
    OID_BASIC_CONSTRAINTS,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_SUBJECT_ALTERNATIVE_NAME,
    ExtensionRecord,
    ExtKeyUsage,
    KeyUsageFlag,
    PublicKeyAlgorithm,
)
from protocols.extensions.codec import (
    BasicConstraintsExtension,
    ExtendedKeyUsageExtension,
    KeyUsageExtension,
    decode_extension,
)
from utils.logger import PKILogger

logger = PKILogger.get_logger("TemplateDeriver")

# Extensions rebuilt as typed template fields
_TEMPLATE_KINDS = (BasicConstraintsExtension, KeyUsageExtension, ExtendedKeyUsageExtension)
_TYPED_OIDS = {OID_BASIC_CONSTRAINTS, OID_KEY_USAGE, OID_EXTENDED_KEY_USAGE}


@dataclass(frozen=True)
class SigningParameters:
    """
    Parameters chosen by the signing authority.

    Attributes:
        serial_number: Serial number, unique per issuer
        not_before: Start of validity
        not_after: End of validity
    """

    serial_number: int
    not_before: datetime
    not_after: datetime

    @classmethod
    def with_defaults(
        cls,
        is_ca: bool = False,
        duration: Optional[timedelta] = None,
        authorities: Iterable[Authority] = (),
        serial_number: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> "SigningParameters":
        """Random serial number and the policy validity window."""
        return cls(
            serial_number=serial_number or x509.random_serial_number(),
            not_before=certificate_not_before(now),
            not_after=certificate_not_after(duration, authorities, is_ca=is_ca, now=now),
        )


@dataclass
class CertificateTemplate:
    """
    Certificate ready to be signed, derived from a certificate request.

    Consumed once by the signer.
    """

    serial_number: int
    subject: x509.Name
    public_key: object
    not_before: datetime
    not_after: datetime
    signature_hash_algorithm: Optional[hashes.HashAlgorithm] = None
    public_key_algorithm: Optional[PublicKeyAlgorithm] = None
    dns_names: List[str] = field(default_factory=list)
    ip_addresses: List[IPAddress] = field(default_factory=list)
    uris: List[str] = field(default_factory=list)
    email_addresses: List[str] = field(default_factory=list)

    # Basic constraints (only emitted when basic_constraints_valid)
    basic_constraints_valid: bool = False
    basic_constraints_critical: bool = True
    is_ca: bool = False
    max_path_len: Optional[int] = None

    key_usage: KeyUsageFlag = KeyUsageFlag(0)
    key_usage_critical: bool = True

    ext_key_usage: List[ExtKeyUsage] = field(default_factory=list)
    ext_key_usage_critical: bool = False

    # Requested extensions with no typed field, carried verbatim
    extra_extensions: List[ExtensionRecord] = field(default_factory=list)

    @property
    def has_subject_alt_names(self) -> bool:
        return bool(self.dns_names or self.ip_addresses or self.uris or self.email_addresses)


def _apply_extension(template: CertificateTemplate, extension) -> None:
    if isinstance(extension, BasicConstraintsExtension):
        template.basic_constraints_valid = True
        template.basic_constraints_critical = extension.critical
        template.is_ca = extension.is_ca
        template.max_path_len = extension.max_path_len
    elif isinstance(extension, KeyUsageExtension):
        template.key_usage = KeyUsageFlag(extension.value)
        template.key_usage_critical = extension.critical
    elif isinstance(extension, ExtendedKeyUsageExtension):
        purposes = extension.purposes()
        if len(purposes) < len(extension.oids):
            logger.debug(
                f"Dropped {len(extension.oids) - len(purposes)} unknown extended key usage OID(s)"
            )
        template.ext_key_usage = purposes
        template.ext_key_usage_critical = extension.critical


def derive_certificate_template(
    csr: CertificateRequest, parameters: SigningParameters
) -> CertificateTemplate:
    """
    Converte una certificate signing request in un template da firmare.

    Args:
        csr: Parsed certificate request
        parameters: Serial number and validity window

    Returns:
        CertificateTemplate; never fails on unknown or malformed extensions
    """
    template = CertificateTemplate(
        serial_number=parameters.serial_number,
        subject=csr.subject,
        public_key=csr.public_key,
        not_before=parameters.not_before,
        not_after=parameters.not_after,
        signature_hash_algorithm=csr.signature_hash_algorithm,
        public_key_algorithm=csr.public_key_algorithm,
        dns_names=list(csr.dns_names),
        ip_addresses=list(csr.ip_addresses),
        uris=list(csr.uris),
        email_addresses=list(csr.email_addresses),
    )

    for record in csr.extensions:
        # SANs are already copied as lists
        if record.oid == OID_SUBJECT_ALTERNATIVE_NAME:
            continue
        if record.oid not in _TYPED_OIDS:
            template.extra_extensions.append(record)
            continue

        extension = decode_extension(record, kinds=_TEMPLATE_KINDS)
        if extension is None:
            continue
        _apply_extension(template, extension)

    return template


def template_extension_oids(template: CertificateTemplate) -> Tuple[str, ...]:
    """Object identifiers the signer will emit for this template, in order."""
    oids = []
    if template.basic_constraints_valid:
        oids.append(OID_BASIC_CONSTRAINTS)
    if template.key_usage:
        oids.append(OID_KEY_USAGE)
    if template.ext_key_usage:
        oids.append(OID_EXTENDED_KEY_USAGE)
    if template.has_subject_alt_names:
        oids.append(OID_SUBJECT_ALTERNATIVE_NAME)
    oids.extend(record.oid for record in template.extra_extensions)
    return tuple(oids)
