"""
PKI Configuration Package

Centralizza costanti di validità, chiavi e logging del sistema PKI.
"""

from .pki_config import (
    PKI_CONSTANTS,
    PKI_LOGGING,
    PKIConstants,
    PKILoggingConfig,
)

__all__ = [
    'PKI_CONSTANTS',
    'PKI_LOGGING',
    'PKIConstants',
    'PKILoggingConfig',
]
