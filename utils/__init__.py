"""
Utils Package

Contains utility modules for certificate helpers, logging, PEM I/O and
certificate factories.
"""

from .cert_utils import (
    common_name_to_file_name,
    format_certificate_info,
    get_certificate_expiry_time,
    get_certificate_not_before,
    get_certificate_ski,
    is_certificate_valid_at,
)
from .logger import PKILogger

__all__ = [
    # Certificate utilities
    "common_name_to_file_name",
    "format_certificate_info",
    "get_certificate_expiry_time",
    "get_certificate_not_before",
    "get_certificate_ski",
    "is_certificate_valid_at",
    # Logging
    "PKILogger",
]
