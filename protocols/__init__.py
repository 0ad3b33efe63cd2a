"""
X.509 Certificate Issuance Protocols

Builds certificate signing requests with structured extension data, derives
signable certificate templates from them and signs leaf, issuing and root
certificates with a bounded validity window.

Module Structure:
- core/: Types, error taxonomy and key material
- extensions/: Usage registry and DER extension codec
- certificates/: CSR builder, template deriver, signer and validity policy

Standards Reference:
- RFC 5280 - Internet X.509 Public Key Infrastructure Certificate Profile
- RFC 2986 - PKCS #10 Certification Request Syntax

Author: SecureRoad PKI Project
Date: October 2025
"""

__version__ = "1.0.0"

from .core import (
    KeyType,
    KeyUsageFlag,
    ExtKeyUsage,
    ExtensionRecord,
    KeyPair,
    CertificateIssuanceError,
    generate_key_pair,
    get_private_key_type,
    public_key_of,
)
from .extensions import (
    BasicConstraintsExtension,
    KeyUsageExtension,
    ExtendedKeyUsageExtension,
    CertificateTemplateExtension,
    SubjectAltNameExtension,
    parse_key_usage,
    parse_ext_key_usage,
)
from .certificates import (
    CSRParameters,
    CertificateRequest,
    CertificateTemplate,
    SigningParameters,
    build_certificate_request,
    derive_certificate_template,
    sign_certificate,
    sign_certificate_request,
    certificate_not_before,
    certificate_not_after,
)

__all__ = [
    "__version__",

    # Core
    "KeyType",
    "KeyUsageFlag",
    "ExtKeyUsage",
    "ExtensionRecord",
    "KeyPair",
    "CertificateIssuanceError",
    "generate_key_pair",
    "get_private_key_type",
    "public_key_of",

    # Extensions
    "BasicConstraintsExtension",
    "KeyUsageExtension",
    "ExtendedKeyUsageExtension",
    "CertificateTemplateExtension",
    "SubjectAltNameExtension",
    "parse_key_usage",
    "parse_ext_key_usage",

    # Certificates
    "CSRParameters",
    "CertificateRequest",
    "CertificateTemplate",
    "SigningParameters",
    "build_certificate_request",
    "derive_certificate_template",
    "sign_certificate",
    "sign_certificate_request",
    "certificate_not_before",
    "certificate_not_after",
]
