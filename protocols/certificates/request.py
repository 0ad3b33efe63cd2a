"""
Certificate Signing Request Builder

Builds a PKCS#10 certificate signing request carrying the issuance
parameters as extensions (basic constraints, key usage, extended key usage,
certificate template name) and the host identifiers as Subject Alternative
Names, signs it with the requester's key (proof of possession) and parses
the signed bytes back into a CertificateRequest.

Standards Reference:
- RFC 2986 - PKCS #10 Certification Request Syntax
- RFC 5280 Section 4.2.1.6 - Subject Alternative Name

Author: SecureRoad PKI Project
Date: October 2025
"""

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import asn1tools
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.x509.oid import NameOID

from protocols.core.crypto import (
    public_key_algorithm_of,
    public_key_of,
    signature_hash_for,
    unwrap_private_key,
)
from protocols.core.errors import (
    CertificateIssuanceError,
    DecodingError,
    EncodingError,
    ParseError,
    RequestCreationError,
)
from protocols.core.types import (
    OID_SUBJECT_ALTERNATIVE_NAME,
    ExtensionRecord,
    ExtKeyUsage,
    PublicKeyAlgorithm,
)
from protocols.extensions.codec import (
    BasicConstraintsExtension,
    CertificateTemplateExtension,
    ExtendedKeyUsageExtension,
    KeyUsageExtension,
    SubjectAltNameExtension,
)
from protocols.extensions.usages import parse_ext_key_usage, parse_key_usages
from utils.logger import PKILogger

logger = PKILogger.get_logger("CSRBuilder")

# PKCS #10 envelope, walked to reach the raw extension list
PKCS10_SCHEMA = Path(__file__).parent / "pkcs10.asn"

pkcs10_compiler = asn1tools.compile_files([str(PKCS10_SCHEMA)], codec="der")

# pkcs-9-at-extensionRequest
OID_EXTENSION_REQUEST = "1.2.840.113549.1.9.14"

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


# ============================================================================
# PARAMETERS
# ============================================================================


@dataclass(frozen=True)
class CSRParameters:
    """
    Issuance parameters embedded in a certificate signing request.

    Attributes:
        key_usage: KeyUsageFlag bitmask
        ext_key_usage: Extended key usage purposes (names or ExtKeyUsage)
        is_ca: Request an issuing certificate
        max_path_len: Path length constraint of an issuing certificate
            (None = unconstrained); ignored when is_ca is False
        certificate_template: Template name used by some private CAs (optional)
    """

    key_usage: int = 0
    ext_key_usage: Tuple[Union[str, ExtKeyUsage], ...] = ()
    is_ca: bool = False
    max_path_len: Optional[int] = None
    certificate_template: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "ext_key_usage", tuple(self.ext_key_usage))

    @classmethod
    def from_names(
        cls,
        key_usages: Iterable[str] = (),
        ext_key_usages: Iterable[str] = (),
        is_ca: bool = False,
        max_path_len: Optional[int] = None,
        certificate_template: Optional[str] = None,
    ) -> "CSRParameters":
        """
        Build parameters from usage names, as found in configuration files.

        Raises:
            UnknownUsageError: If any name is not a known usage
        """
        return cls(
            key_usage=parse_key_usages(key_usages),
            ext_key_usage=tuple(parse_ext_key_usage(name) for name in ext_key_usages),
            is_ca=is_ca,
            max_path_len=max_path_len,
            certificate_template=certificate_template,
        )


# ============================================================================
# SUBJECT ALTERNATIVE NAMES
# ============================================================================


@dataclass
class SubjectAltNames:
    """Host identifiers split by Subject Alternative Name category."""

    dns_names: List[str] = field(default_factory=list)
    ip_addresses: List[IPAddress] = field(default_factory=list)
    uris: List[str] = field(default_factory=list)
    email_addresses: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.dns_names or self.ip_addresses or self.uris or self.email_addresses)

    def general_names(self) -> List[x509.GeneralName]:
        names: List[x509.GeneralName] = []
        names.extend(x509.DNSName(name) for name in self.dns_names)
        names.extend(x509.RFC822Name(email) for email in self.email_addresses)
        names.extend(x509.IPAddress(ip) for ip in self.ip_addresses)
        names.extend(x509.UniformResourceIdentifier(uri) for uri in self.uris)
        return names

    @classmethod
    def from_record(cls, record: ExtensionRecord) -> "SubjectAltNames":
        """
        SAN lists of a subjectAltName record. A value that does not decode
        yields no names instead of failing the whole request.
        """
        try:
            san = SubjectAltNameExtension.unmarshal(record)
        except DecodingError as e:
            logger.warning(f"Ignoring malformed subject alternative names: {e}")
            return cls()
        return cls(
            dns_names=list(san.dns_names),
            ip_addresses=list(san.ip_addresses),
            uris=list(san.uris),
            email_addresses=list(san.email_addresses),
        )


def _parse_ip(host: str) -> Optional[IPAddress]:
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return None
    # A zone index ("fe80::1%eth0") has no place in an iPAddress SAN
    if getattr(ip, "scope_id", None):
        return None
    return ip


def classify_hosts(hosts: Iterable[str]) -> SubjectAltNames:
    """
    Split host identifiers into Subject Alternative Name categories.

    Precedence: contains "@" -> email; IP literal -> IP address;
    contains "://" -> URI; anything else -> DNS name. Every host lands in
    exactly one category and input order is kept inside each category.
    """
    sans = SubjectAltNames()
    for host in hosts:
        ip = None if "@" in host else _parse_ip(host)
        if "@" in host:
            sans.email_addresses.append(host)
        elif ip is not None:
            sans.ip_addresses.append(ip)
        elif "://" in host:
            sans.uris.append(host)
        else:
            sans.dns_names.append(host)
    return sans


# ============================================================================
# REQUESTED EXTENSIONS
# ============================================================================


def _requested_extensions(raw: bytes) -> List[ExtensionRecord]:
    """
    Extension records of the extensionRequest attribute(s), in order.

    Values are kept as the raw extnValue bytes; nothing is interpreted here.

    Raises:
        ParseError: If the request envelope or the extension list is malformed
    """
    try:
        request = pkcs10_compiler.decode("CertificationRequest", raw)
        records = []
        for attribute in request["certificationRequestInfo"]["attributes"]:
            if attribute["type"] != OID_EXTENSION_REQUEST:
                continue
            for value in attribute["values"]:
                for extension in pkcs10_compiler.decode("Extensions", value):
                    records.append(ExtensionRecord(
                        oid=extension["extnID"],
                        critical=bool(extension.get("critical", False)),
                        value=bytes(extension["extnValue"]),
                    ))
    except (asn1tools.Error, ValueError, TypeError, IndexError, KeyError) as e:
        raise ParseError(f"cannot parse requested extensions: {e}") from e
    return records


# ============================================================================
# CERTIFICATE REQUEST
# ============================================================================


@dataclass(frozen=True)
class CertificateRequest:
    """
    Parsed, signed certificate signing request. Read-only.

    Attributes:
        subject: Subject distinguished name
        public_key: Requester public key
        dns_names / ip_addresses / uris / email_addresses: SAN lists
        extensions: Every requested extension as an ExtensionRecord
        signature_hash_algorithm: Hash of the request signature
        public_key_algorithm: RSA or EC
        raw: DER encoding of the signed request
    """

    subject: x509.Name
    public_key: object
    dns_names: Tuple[str, ...]
    ip_addresses: Tuple[IPAddress, ...]
    uris: Tuple[str, ...]
    email_addresses: Tuple[str, ...]
    extensions: Tuple[ExtensionRecord, ...]
    signature_hash_algorithm: Optional[hashes.HashAlgorithm]
    public_key_algorithm: Optional[PublicKeyAlgorithm]
    raw: bytes
    x509_request: x509.CertificateSigningRequest = field(compare=False, repr=False)

    @classmethod
    def from_der(cls, raw: bytes) -> "CertificateRequest":
        """
        Parse a DER-encoded certificate signing request.

        Raises:
            ParseError: If the request or its extension list cannot be parsed;
                a malformed individual extension value is kept as is
        """
        try:
            csr = x509.load_der_x509_csr(raw)
        except ValueError as e:
            raise ParseError(f"cannot parse certificate request: {e}") from e
        return cls._from_x509(csr, _requested_extensions(raw), raw)

    @classmethod
    def from_pem(cls, data: bytes) -> "CertificateRequest":
        """Parse a PEM-encoded certificate signing request."""
        try:
            csr = x509.load_pem_x509_csr(data)
        except ValueError as e:
            raise ParseError(f"cannot parse certificate request: {e}") from e
        return cls.from_der(csr.public_bytes(serialization.Encoding.DER))

    @classmethod
    def _from_x509(cls, csr, records: List[ExtensionRecord], raw: bytes) -> "CertificateRequest":
        sans = SubjectAltNames()
        for record in records:
            if record.oid == OID_SUBJECT_ALTERNATIVE_NAME:
                sans = SubjectAltNames.from_record(record)

        public_key = csr.public_key()
        return cls(
            subject=csr.subject,
            public_key=public_key,
            dns_names=tuple(sans.dns_names),
            ip_addresses=tuple(sans.ip_addresses),
            uris=tuple(sans.uris),
            email_addresses=tuple(sans.email_addresses),
            extensions=tuple(records),
            signature_hash_algorithm=csr.signature_hash_algorithm,
            public_key_algorithm=public_key_algorithm_of(public_key),
            raw=raw,
            x509_request=csr,
        )

    @property
    def common_name(self) -> Optional[str]:
        attributes = self.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        return attributes[0].value if attributes else None

    @property
    def is_signature_valid(self) -> bool:
        return self.x509_request.is_signature_valid

    def to_pem(self) -> bytes:
        return self.x509_request.public_bytes(serialization.Encoding.PEM)


# ============================================================================
# BUILDER
# ============================================================================


def build_request_extensions(parameters: CSRParameters) -> List[ExtensionRecord]:
    """
    Marshal the extensions requested by the CSR parameters.

    Basic constraints and key usage are always present (critical). Extended
    key usage is added (non-critical) only when at least one purpose has a
    known OID; purposes without one are skipped. The certificate template
    name is added when set.

    Raises:
        RequestCreationError: Naming the extension that failed to encode
    """
    max_path_len = parameters.max_path_len if parameters.is_ca else None

    stages = [
        ("basic-constraints", BasicConstraintsExtension(
            is_ca=parameters.is_ca, max_path_len=max_path_len, critical=True,
        )),
        ("key-usage", KeyUsageExtension(value=parameters.key_usage, critical=True)),
    ]

    if parameters.ext_key_usage:
        ext_key_usage = ExtendedKeyUsageExtension.from_purposes(parameters.ext_key_usage)
        if ext_key_usage.oids:
            stages.append(("extended-key-usage", ext_key_usage))

    if parameters.certificate_template:
        stages.append(("certificate-template", CertificateTemplateExtension(
            name=parameters.certificate_template,
        )))

    records = []
    for stage, extension in stages:
        try:
            records.append(extension.marshal())
        except EncodingError as e:
            raise RequestCreationError(e.message, stage=stage) from e
    return records


def _subject_with_common_name(subject: x509.Name, hosts: List[str]) -> x509.Name:
    if not hosts or subject.get_attributes_for_oid(NameOID.COMMON_NAME):
        return subject
    common_name = x509.RelativeDistinguishedName(
        [x509.NameAttribute(NameOID.COMMON_NAME, hosts[0])]
    )
    return x509.Name(list(subject.rdns) + [common_name])


def build_certificate_request(
    subject: x509.Name,
    parameters: CSRParameters,
    key,
    hosts: Iterable[str] = (),
) -> CertificateRequest:
    """
    Costruisce e firma una certificate signing request.

    Args:
        subject: Subject name; a missing common name defaults to the first host
        parameters: CSRParameters to embed as extensions
        key: Requester private key (or KeyPair)
        hosts: Host identifiers, classified into SAN categories

    Returns:
        The signed request, parsed back from its DER encoding

    Raises:
        RequestCreationError: If any stage fails; no partial request is returned
    """
    hosts = list(hosts)
    private_key = unwrap_private_key(key)

    records = build_request_extensions(parameters)

    try:
        subject = _subject_with_common_name(subject, hosts)
    except ValueError as e:
        raise RequestCreationError(f"invalid common name: {e}", stage="subject") from e

    sans = classify_hosts(hosts)

    if public_key_of(private_key) is None:
        raise RequestCreationError(
            f"unsupported private key: {type(private_key).__name__}", stage="public-key"
        )

    builder = x509.CertificateSigningRequestBuilder().subject_name(subject)
    try:
        for record in records:
            builder = builder.add_extension(record.to_extension_type(), critical=record.critical)
        if sans:
            builder = builder.add_extension(
                x509.SubjectAlternativeName(sans.general_names()), critical=False
            )
    except (ValueError, TypeError) as e:
        raise RequestCreationError(str(e), stage="subject-alternative-name") from e

    try:
        signed = builder.sign(private_key, signature_hash_for(private_key))
    except (ValueError, TypeError) as e:
        raise RequestCreationError(f"error creating certificate request: {e}", stage="signature") from e

    try:
        request = CertificateRequest.from_der(signed.public_bytes(serialization.Encoding.DER))
    except CertificateIssuanceError as e:
        raise RequestCreationError(f"error parsing certificate request: {e}", stage="parse") from e

    if not request.is_signature_valid:
        raise RequestCreationError("certificate request signature does not verify", stage="parse")

    logger.info(
        f"Built certificate request for {request.subject.rfc4514_string()} "
        f"({len(hosts)} host(s), {len(records)} extension(s))"
    )
    return request
