"""
X.509 Extensions

- usages: key usage / extended key usage registry
- codec: DER encoding/decoding of the supported extensions
"""

from .usages import (
    get_usage_registry,
    parse_key_usage,
    parse_key_usages,
    parse_ext_key_usage,
    list_key_usages,
    list_ext_key_usages,
    key_usage_names,
    ext_key_usage_to_oid,
    oid_to_ext_key_usage,
    resolve_ext_key_usages,
)
from .codec import (
    BasicConstraintsExtension,
    KeyUsageExtension,
    ExtendedKeyUsageExtension,
    CertificateTemplateExtension,
    SubjectAltNameExtension,
    KNOWN_EXTENSIONS,
    decode_extension,
)

__all__ = [
    "get_usage_registry",
    "parse_key_usage",
    "parse_key_usages",
    "parse_ext_key_usage",
    "list_key_usages",
    "list_ext_key_usages",
    "key_usage_names",
    "ext_key_usage_to_oid",
    "oid_to_ext_key_usage",
    "resolve_ext_key_usages",
    "BasicConstraintsExtension",
    "KeyUsageExtension",
    "ExtendedKeyUsageExtension",
    "CertificateTemplateExtension",
    "SubjectAltNameExtension",
    "KNOWN_EXTENSIONS",
    "decode_extension",
]
