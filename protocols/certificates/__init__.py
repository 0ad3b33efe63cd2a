"""
X.509 Certificate Issuance

Pipeline from certificate signing request to signed certificate.

Modules:
- request: CSR Builder (SAN classification, extension embedding, PoP signature)
- template: Template Deriver (CSR -> signable certificate template)
- signer: Signer (self-signed or authority-issued certificates)
- validity: Validity Window Policy (not-before / not-after defaults)

Standards Reference:
- RFC 5280 - Internet X.509 Public Key Infrastructure Certificate Profile
- RFC 2986 - PKCS #10 Certification Request Syntax

Author: SecureRoad PKI Project
Date: October 2025
"""

from .validity import (
    certificate_not_before,
    certificate_not_after,
    ca_certificate_not_after,
)
from .request import (
    CSRParameters,
    SubjectAltNames,
    CertificateRequest,
    classify_hosts,
    build_request_extensions,
    build_certificate_request,
)
from .template import (
    SigningParameters,
    CertificateTemplate,
    derive_certificate_template,
    template_extension_oids,
)
from .signer import (
    sign_certificate,
    sign_certificate_request,
)

__all__ = [
    # Validity
    "certificate_not_before",
    "certificate_not_after",
    "ca_certificate_not_after",

    # Requests
    "CSRParameters",
    "SubjectAltNames",
    "CertificateRequest",
    "classify_hosts",
    "build_request_extensions",
    "build_certificate_request",

    # Templates
    "SigningParameters",
    "CertificateTemplate",
    "derive_certificate_template",
    "template_extension_oids",

    # Signing
    "sign_certificate",
    "sign_certificate_request",
]
