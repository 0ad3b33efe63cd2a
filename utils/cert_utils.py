"""
Certificate utility functions for PKI operations.

Provides helper functions for SKI extraction, temporal information handling
and file naming of certificates.

NOTA - Gestione Datetime con cryptography:
------------------------------------------
Use not_valid_before_utc / not_valid_after_utc (cryptography 42+): the
legacy attributes return NAIVE datetimes. Every function here returns
UTC-aware datetimes.
"""

from datetime import datetime, timezone
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.x509.oid import ExtensionOID


def get_certificate_ski(certificate: x509.Certificate) -> str:
    """
    Extracts Subject Key Identifier (SKI) from certificate in hex format.

    Returns the SKI extension value if present, otherwise the SHA-256 hash
    of the SubjectPublicKeyInfo.

    Args:
        certificate: X.509 certificate

    Returns:
        SKI as hex uppercase string
    """
    try:
        ski_ext = certificate.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_KEY_IDENTIFIER)
        return ski_ext.value.digest.hex().upper()
    except x509.ExtensionNotFound:
        public_key_der = certificate.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        digest = hashes.Hash(hashes.SHA256())
        digest.update(public_key_der)
        return digest.finalize().hex().upper()


def get_certificate_expiry_time(certificate: x509.Certificate) -> datetime:
    """
    Extracts certificate expiration timestamp (timezone-aware).

    Args:
        certificate: X.509 certificate

    Returns:
        Expiration datetime in UTC
    """
    return certificate.not_valid_after_utc


def get_certificate_not_before(certificate: x509.Certificate) -> datetime:
    """Extracts certificate validity start timestamp (timezone-aware)."""
    return certificate.not_valid_before_utc


def format_certificate_info(certificate: x509.Certificate) -> str:
    """
    Formats certificate information as a single human-readable line.

    Args:
        certificate: X.509 certificate

    Returns:
        Formatted string with subject, issuer, serial, SKI and validity
    """
    not_before = get_certificate_not_before(certificate)
    not_after = get_certificate_expiry_time(certificate)
    ski = get_certificate_ski(certificate)

    return (
        f"subject={certificate.subject.rfc4514_string()} "
        f"issuer={certificate.issuer.rfc4514_string()} "
        f"serial={certificate.serial_number} "
        f"ski={ski[:16]} "
        f"validity={not_before.strftime('%Y-%m-%d %H:%M:%S')}.."
        f"{not_after.strftime('%Y-%m-%d %H:%M:%S')}"
    )


def is_certificate_valid_at(
    certificate: x509.Certificate, timestamp: Optional[datetime] = None
) -> bool:
    """
    Checks if certificate is valid at a given time.

    Args:
        certificate: X.509 certificate
        timestamp: Time to check (default: current UTC time)

    Returns:
        True if valid, False otherwise
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    not_before = get_certificate_not_before(certificate)
    not_after = get_certificate_expiry_time(certificate)

    return not_before <= timestamp <= not_after


def common_name_to_file_name(common_name: str) -> str:
    """
    Converts an FQDN into an unambiguous form usable as a filename.

    Example:
        >>> common_name_to_file_name("*.example.com")
        'STAR_example_com'
    """
    return common_name.replace(".", "_").replace(" ", "").replace("*", "STAR")
