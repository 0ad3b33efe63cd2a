"""
Certificate Maker for X.509 certificates.

Factory methods wiring key generation, CSR building, template derivation
and signing into single calls: a self-signed root authority, and TLS
certificates issued by an authority for a list of hosts.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from config.pki_config import PKI_CONSTANTS
from protocols.certificates.request import CSRParameters, build_certificate_request
from protocols.certificates.signer import sign_certificate_request
from protocols.certificates.template import SigningParameters
from protocols.core.crypto import KeyPair, generate_key_pair
from protocols.core.errors import RequestCreationError
from protocols.core.types import ExtKeyUsage, KeyType
from protocols.extensions.usages import parse_key_usages
from utils.logger import PKILogger
from utils.pki_io import encode_certificates, encode_private_keys

logger = PKILogger.get_logger("CertificateMaker")

# Subject attributes specific to a single certificate, not inherited from the authority
_CERTIFICATE_SPECIFIC_ATTRIBUTES = (NameOID.COMMON_NAME, NameOID.SERIAL_NUMBER)


@dataclass(frozen=True)
class TLSCertificate:
    """
    Issued certificate together with its issuer and private key.

    Attributes:
        certificate: Leaf certificate
        authority: Issuing certificate
        private_key: Key pair generated for the leaf
    """

    certificate: x509.Certificate
    authority: x509.Certificate
    private_key: KeyPair

    @property
    def chain(self) -> List[bytes]:
        """DER certificates, leaf first."""
        return [
            self.certificate.public_bytes(serialization.Encoding.DER),
            self.authority.public_bytes(serialization.Encoding.DER),
        ]

    @property
    def certificate_pem(self) -> bytes:
        """Leaf and authority as concatenated CERTIFICATE blocks."""
        return encode_certificates(self.certificate, self.authority)

    @property
    def private_key_pem(self) -> bytes:
        return encode_private_keys(self.private_key)


def _subject_for_host(authority_subject: x509.Name, host: str) -> x509.Name:
    attributes = [
        attribute
        for attribute in authority_subject
        if attribute.oid not in _CERTIFICATE_SPECIFIC_ATTRIBUTES
    ]
    attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, host))
    return x509.Name(attributes)


class CertificateMaker:
    """
    Factory for creating authority and TLS certificates.
    """

    @staticmethod
    def create_root_authority(
        subject: x509.Name,
        key_type: Union[KeyType, str] = PKI_CONSTANTS.DEFAULT_KEY_TYPE,
        duration: Optional[timedelta] = None,
        max_path_len: Optional[int] = None,
    ) -> Tuple[x509.Certificate, KeyPair]:
        """
        Crea un certificato Root CA self-signed.

        Args:
            subject: Subject (and issuer) name
            key_type: Type of the generated key
            duration: Validity; None selects the issuing/root maximum
            max_path_len: Path length constraint (None = unconstrained)

        Returns:
            (certificate, key pair)
        """
        key_pair = generate_key_pair(key_type)
        parameters = CSRParameters(
            key_usage=parse_key_usages(PKI_CONSTANTS.CA_KEY_USAGES),
            is_ca=True,
            max_path_len=max_path_len,
        )
        csr = build_certificate_request(subject, parameters, key_pair)
        certificate = sign_certificate_request(
            csr, None, key_pair, SigningParameters.with_defaults(is_ca=True, duration=duration)
        )
        logger.info(f"Created root authority {subject.rfc4514_string()}")
        return certificate, key_pair

    @staticmethod
    def request_tls_certificate_with_usages(
        authority: x509.Certificate,
        authority_key,
        parameters: Optional[SigningParameters],
        key_type: Union[KeyType, str],
        key_usage: int,
        ext_key_usage: Iterable[Union[str, ExtKeyUsage]],
        is_ca: bool,
        *hosts: str,
        max_path_len: Optional[int] = None,
    ) -> TLSCertificate:
        """
        Genera e firma un certificato per gli host indicati.

        The subject copies the authority subject without its common name and
        serial number; the common name becomes the first host.

        Args:
            authority: Issuing certificate
            authority_key: Private key (or KeyPair) of the authority
            parameters: Serial number and validity; None selects a random
                serial and the policy window clamped to the authority expiry
            key_type: Type of the generated leaf key
            key_usage: KeyUsageFlag bitmask
            ext_key_usage: Extended key usage purposes
            is_ca: Request an issuing certificate
            *hosts: Host identifiers, the first one is the common name
            max_path_len: Path length constraint when is_ca is set

        Raises:
            RequestCreationError: If no host is given or the CSR cannot be built
            KeyGenerationError: If the key type is unknown
            SigningError: If the authority cannot sign
        """
        if not hosts:
            raise RequestCreationError("at least one host is required", stage="hosts")

        subject = _subject_for_host(authority.subject, hosts[0])
        key_pair = generate_key_pair(key_type)

        csr_parameters = CSRParameters(
            key_usage=key_usage,
            ext_key_usage=tuple(ext_key_usage),
            is_ca=is_ca,
            max_path_len=max_path_len,
        )
        csr = build_certificate_request(subject, csr_parameters, key_pair, hosts)

        if parameters is None:
            parameters = SigningParameters.with_defaults(is_ca=is_ca, authorities=[authority])
        certificate = sign_certificate_request(csr, authority, authority_key, parameters)

        logger.info(f"Issued certificate for {hosts[0]} ({len(hosts)} host(s))")
        return TLSCertificate(certificate=certificate, authority=authority, private_key=key_pair)

    @staticmethod
    def request_tls_certificate(
        authority: x509.Certificate,
        authority_key,
        parameters: Optional[SigningParameters],
        key_type: Union[KeyType, str],
        *hosts: str,
    ) -> TLSCertificate:
        """
        Server certificate suitable for typical host verification
        (DigitalSignature, ServerAuth, not a CA).
        """
        return CertificateMaker.request_tls_certificate_with_usages(
            authority,
            authority_key,
            parameters,
            key_type,
            parse_key_usages(PKI_CONSTANTS.TLS_KEY_USAGES),
            PKI_CONSTANTS.TLS_EXT_KEY_USAGES,
            False,
            *hosts,
        )


# === FUNZIONI DI CONVENIENZA ===


def create_standard_subject(country: str, organization: str, common_name: str) -> x509.Name:
    """
    Crea un subject name standard per PKI.

    Args:
        country: Codice paese (es. "IT")
        organization: Nome organizzazione
        common_name: Common name

    Returns:
        x509.Name object
    """
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, country),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
