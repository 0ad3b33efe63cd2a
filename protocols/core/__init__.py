"""
Core Types and Utilities

This module provides the foundational types, error taxonomy and key
material operations of the certificate issuance core.

Submodules:
- types: Enumerations, object identifiers and the generic extension record
- errors: Error kinds and exception hierarchy
- crypto: Key generation, key classification and public key extraction

Author: SecureRoad PKI Project
Date: October 2025
"""

# Re-export all core functionality for convenience
from .types import (
    # Object identifiers
    OID_BASIC_CONSTRAINTS,
    OID_KEY_USAGE,
    OID_EXTENDED_KEY_USAGE,
    OID_SUBJECT_ALTERNATIVE_NAME,
    OID_CERTIFICATE_TEMPLATE_NAME,

    # Enums
    KeyType,
    PublicKeyAlgorithm,
    KeyUsageFlag,
    ExtKeyUsage,
    ALL_KEY_USAGES,

    # Records
    ExtensionRecord,
)

from .errors import (
    ErrorKind,
    CertificateIssuanceError,
    EncodingError,
    DecodingError,
    WrongObjectIdentifierError,
    TrailingBytesError,
    UnknownUsageError,
    KeyGenerationError,
    UnknownKeyTypeError,
    RequestCreationError,
    SigningError,
    ParseError,
)

from .crypto import (
    KeyPair,
    generate_private_key,
    generate_key_pair,
    get_private_key_type,
    public_key_algorithm_of,
    public_key_of,
    public_keys_match,
    signature_hash_for,
)

__all__ = [
    # Object identifiers
    "OID_BASIC_CONSTRAINTS",
    "OID_KEY_USAGE",
    "OID_EXTENDED_KEY_USAGE",
    "OID_SUBJECT_ALTERNATIVE_NAME",
    "OID_CERTIFICATE_TEMPLATE_NAME",

    # Enums
    "KeyType",
    "PublicKeyAlgorithm",
    "KeyUsageFlag",
    "ExtKeyUsage",
    "ALL_KEY_USAGES",
    "ExtensionRecord",

    # Errors
    "ErrorKind",
    "CertificateIssuanceError",
    "EncodingError",
    "DecodingError",
    "WrongObjectIdentifierError",
    "TrailingBytesError",
    "UnknownUsageError",
    "KeyGenerationError",
    "UnknownKeyTypeError",
    "RequestCreationError",
    "SigningError",
    "ParseError",

    # Key material
    "KeyPair",
    "generate_private_key",
    "generate_key_pair",
    "get_private_key_type",
    "public_key_algorithm_of",
    "public_key_of",
    "public_keys_match",
    "signature_hash_for",
]
