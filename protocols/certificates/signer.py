"""
Certificate Signer

Turns a CertificateTemplate into a signed X.509 certificate. With no
authority certificate the template is self-signed (issuer == subject) and
the signing key must belong to the template itself; otherwise the
authority certificate is the issuer and the signing key must belong to it.

Exactly one signing pass and one re-parse of the produced DER bytes are
performed.

Standards Reference:
- RFC 5280 - Internet X.509 Public Key Infrastructure Certificate Profile

Author: SecureRoad PKI Project
Date: October 2025
"""

from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import ExtensionOID, ObjectIdentifier

from protocols.certificates.request import CertificateRequest, SubjectAltNames
from protocols.certificates.template import (
    CertificateTemplate,
    SigningParameters,
    derive_certificate_template,
)
from protocols.core.crypto import (
    public_key_of,
    public_keys_match,
    signature_hash_for,
    unwrap_private_key,
)
from protocols.core.errors import ParseError, SigningError
from protocols.core.types import KeyUsageFlag
from protocols.extensions.usages import ext_key_usage_to_oid
from utils.cert_utils import format_certificate_info
from utils.logger import PKILogger

logger = PKILogger.get_logger("Signer")


# ============================================================================
# EXTENSIONS
# ============================================================================


def _key_usage(value: KeyUsageFlag) -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=bool(value & KeyUsageFlag.DIGITAL_SIGNATURE),
        content_commitment=bool(value & KeyUsageFlag.CONTENT_COMMITMENT),
        key_encipherment=bool(value & KeyUsageFlag.KEY_ENCIPHERMENT),
        data_encipherment=bool(value & KeyUsageFlag.DATA_ENCIPHERMENT),
        key_agreement=bool(value & KeyUsageFlag.KEY_AGREEMENT),
        key_cert_sign=bool(value & KeyUsageFlag.CERT_SIGN),
        crl_sign=bool(value & KeyUsageFlag.CRL_SIGN),
        encipher_only=bool(value & KeyUsageFlag.ENCIPHER_ONLY),
        decipher_only=bool(value & KeyUsageFlag.DECIPHER_ONLY),
    )


def _authority_key_identifier(
    authority: x509.Certificate,
) -> Optional[x509.AuthorityKeyIdentifier]:
    try:
        ski = authority.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_KEY_IDENTIFIER)
    except x509.ExtensionNotFound:
        return None
    return x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value)


def _certificate_extensions(
    template: CertificateTemplate, authority: Optional[x509.Certificate]
) -> List[Tuple[x509.ExtensionType, bool]]:
    """Extensions of the certificate, in emission order."""
    extensions = []

    if template.basic_constraints_valid:
        path_length = template.max_path_len if template.is_ca else None
        extensions.append((
            x509.BasicConstraints(ca=template.is_ca, path_length=path_length),
            template.basic_constraints_critical,
        ))

    if template.key_usage:
        extensions.append((_key_usage(template.key_usage), template.key_usage_critical))

    if template.ext_key_usage:
        oids = [ObjectIdentifier(ext_key_usage_to_oid(usage)) for usage in template.ext_key_usage]
        extensions.append((x509.ExtendedKeyUsage(oids), template.ext_key_usage_critical))

    if template.has_subject_alt_names:
        sans = SubjectAltNames(
            dns_names=list(template.dns_names),
            ip_addresses=list(template.ip_addresses),
            uris=list(template.uris),
            email_addresses=list(template.email_addresses),
        )
        extensions.append((x509.SubjectAlternativeName(sans.general_names()), False))

    if template.is_ca:
        extensions.append((x509.SubjectKeyIdentifier.from_public_key(template.public_key), False))

    # Self-signed certificates carry no authority key identifier
    if authority is not None:
        aki = _authority_key_identifier(authority)
        if aki is not None:
            extensions.append((aki, False))

    present = {extension.oid.dotted_string for extension, _ in extensions}
    for record in template.extra_extensions:
        if record.oid in present:
            logger.debug(f"Skipping duplicate requested extension {record.oid}")
            continue
        present.add(record.oid)
        extensions.append((record.to_extension_type(), record.critical))

    return extensions


# ============================================================================
# SIGNING
# ============================================================================


def sign_certificate(
    template: CertificateTemplate,
    authority: Optional[x509.Certificate],
    authority_key,
) -> x509.Certificate:
    """
    Firma un certificato a partire dal template.

    Args:
        template: Template derived from a certificate request
        authority: Issuing certificate, or None for a self-signed certificate
        authority_key: Private key (or KeyPair) of the issuer

    Returns:
        The signed certificate, parsed back from its DER encoding

    Raises:
        SigningError: If the key does not match the issuer or signing fails
        ParseError: If the produced bytes cannot be parsed back
    """
    private_key = unwrap_private_key(authority_key)
    signer_public_key = public_key_of(private_key)
    if signer_public_key is None:
        raise SigningError(
            f"unsupported signing key: {type(private_key).__name__}", stage="key"
        )

    if authority is None:
        issuer = template.subject
        if not public_keys_match(signer_public_key, template.public_key):
            raise SigningError(
                "self-signed certificate must be signed with its own key", stage="key"
            )
    else:
        issuer = authority.subject
        if not public_keys_match(signer_public_key, public_key_of(authority)):
            raise SigningError(
                "signing key does not belong to the authority certificate", stage="key"
            )

    try:
        builder = (
            x509.CertificateBuilder()
            .subject_name(template.subject)
            .issuer_name(issuer)
            .public_key(template.public_key)
            .serial_number(template.serial_number)
            .not_valid_before(template.not_before)
            .not_valid_after(template.not_after)
        )
        for extension, critical in _certificate_extensions(template, authority):
            builder = builder.add_extension(extension, critical=critical)
    except (ValueError, TypeError) as e:
        raise SigningError(f"invalid certificate template: {e}", stage="template") from e

    hash_algorithm = template.signature_hash_algorithm or signature_hash_for(private_key)
    try:
        signed = builder.sign(private_key, hash_algorithm)
    except (ValueError, TypeError) as e:
        raise SigningError(f"error creating certificate: {e}", stage="signature") from e

    try:
        certificate = x509.load_der_x509_certificate(
            signed.public_bytes(serialization.Encoding.DER)
        )
    except ValueError as e:
        raise ParseError(f"error parsing certificate: {e}", stage="parse") from e

    logger.info(f"Signed certificate: {format_certificate_info(certificate)}")
    return certificate


def sign_certificate_request(
    csr: CertificateRequest,
    authority: Optional[x509.Certificate],
    authority_key,
    parameters: Optional[SigningParameters] = None,
) -> x509.Certificate:
    """
    Derive the template of a certificate request and sign it.

    Args:
        csr: Parsed certificate request
        authority: Issuing certificate, or None for a self-signed certificate
        authority_key: Private key (or KeyPair) of the issuer
        parameters: Serial number and validity window; defaults to a random
            serial and the policy window clamped to the authority expiry
    """
    if parameters is None:
        authorities = [authority] if authority is not None else []
        parameters = SigningParameters.with_defaults(authorities=authorities)

    template = derive_certificate_template(csr, parameters)
    return sign_certificate(template, authority, authority_key)
