"""
X.509 Core Types and Constants

Defines fundamental enumerations, object identifiers and the generic
extension record used throughout the certificate issuance core.

Standards Reference:
- RFC 5280 - Internet X.509 PKI Certificate and CRL Profile
- RFC 2986 - PKCS #10 Certification Request Syntax

Author: SecureRoad PKI Project
Date: October 2025
"""

from dataclasses import dataclass
from enum import Enum, IntFlag

from cryptography import x509
from cryptography.x509.oid import ExtensionOID, ObjectIdentifier

from protocols.core.errors import KeyGenerationError


# ============================================================================
# OBJECT IDENTIFIERS (RFC 5280 Section 4.2)
# ============================================================================

OID_BASIC_CONSTRAINTS = ExtensionOID.BASIC_CONSTRAINTS.dotted_string
OID_KEY_USAGE = ExtensionOID.KEY_USAGE.dotted_string
OID_EXTENDED_KEY_USAGE = ExtensionOID.EXTENDED_KEY_USAGE.dotted_string
OID_SUBJECT_ALTERNATIVE_NAME = ExtensionOID.SUBJECT_ALTERNATIVE_NAME.dotted_string

# Microsoft "certificate template name" (ADCS uses it to pick an issuance profile)
OID_CERTIFICATE_TEMPLATE_NAME = "1.3.6.1.4.1.311.20.2"


# ============================================================================
# ENUMERATIONS
# ============================================================================


class KeyType(Enum):
    """
    Supported private key types.

    The 3072-bit RSA type keeps its historical "rsa3076" rendering;
    "rsa3072" is accepted by parse().
    """

    RSA2048 = "rsa2048"
    RSA3072 = "rsa3076"
    RSA4096 = "rsa4096"
    ECP256 = "ecp256"
    ECP384 = "ecp384"
    ECP521 = "ecp521"

    @classmethod
    def parse(cls, name: "str | KeyType") -> "KeyType":
        """
        Parse a key type name, case-insensitively.

        Raises:
            KeyGenerationError: If the name is not a known key type
        """
        if isinstance(name, cls):
            return name
        value = str(name).strip().lower()
        if value == "rsa3072":
            return cls.RSA3072
        try:
            return cls(value)
        except ValueError:
            raise KeyGenerationError(f"unknown key type: {name}") from None

    @property
    def algorithm(self) -> "PublicKeyAlgorithm":
        if self.value.startswith("rsa"):
            return PublicKeyAlgorithm.RSA
        return PublicKeyAlgorithm.EC


class PublicKeyAlgorithm(Enum):
    """Public key algorithms supported by the issuance core."""

    RSA = "RSA"
    EC = "EC"


class KeyUsageFlag(IntFlag):
    """
    Key usage bitmask (RFC 5280 Section 4.2.1.3).

    Bit n of the mask corresponds to named bit n of the KeyUsage BIT STRING.
    """

    DIGITAL_SIGNATURE = 1 << 0
    CONTENT_COMMITMENT = 1 << 1
    KEY_ENCIPHERMENT = 1 << 2
    DATA_ENCIPHERMENT = 1 << 3
    KEY_AGREEMENT = 1 << 4
    CERT_SIGN = 1 << 5
    CRL_SIGN = 1 << 6
    ENCIPHER_ONLY = 1 << 7
    DECIPHER_ONLY = 1 << 8


ALL_KEY_USAGES = 0x1FF


class ExtKeyUsage(Enum):
    """Extended key usage purposes, valued by their canonical names."""

    ANY = "Any"
    SERVER_AUTH = "ServerAuth"
    CLIENT_AUTH = "ClientAuth"
    CODE_SIGNING = "CodeSigning"
    EMAIL_PROTECTION = "EmailProtection"
    IPSEC_END_SYSTEM = "IPSECEndSystem"
    IPSEC_TUNNEL = "IPSECTunnel"
    IPSEC_USER = "IPSECUser"
    TIME_STAMPING = "TimeStamping"
    OCSP_SIGNING = "OCSPSigning"
    MICROSOFT_SERVER_GATED_CRYPTO = "MicrosoftServerGatedCrypto"
    NETSCAPE_SERVER_GATED_CRYPTO = "NetscapeServerGatedCrypto"
    MICROSOFT_COMMERCIAL_CODE_SIGNING = "MicrosoftCommercialCodeSigning"
    MICROSOFT_KERNEL_CODE_SIGNING = "MicrosoftKernelCodeSigning"


# ============================================================================
# EXTENSION RECORD
# ============================================================================


@dataclass(frozen=True)
class ExtensionRecord:
    """
    Generic X.509 extension: object identifier, criticality and DER value.

    Attributes:
        oid: Dotted object identifier (e.g. "2.5.29.19")
        critical: Criticality flag
        value: DER-encoded extension value (content of extnValue)
    """

    oid: str
    critical: bool
    value: bytes

    def to_extension_type(self) -> x509.UnrecognizedExtension:
        """Opaque cryptography extension carrying the DER value verbatim."""
        return x509.UnrecognizedExtension(ObjectIdentifier(self.oid), self.value)
