"""
PKI Configuration - Costanti centralizzate per l'emissione dei certificati

Centralizes validity limits, key defaults and logging settings used by the
certificate issuance core. Changing a value here applies to the whole system.

Usage:
    from config.pki_config import PKI_CONSTANTS

    not_after = now + PKI_CONSTANTS.CERTIFICATE_MAX_DURATION

Author: SecureRoad PKI Project
Date: October 2025
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class PKIConstants:
    """
    Costanti centralizzate per la PKI.

    Attributi:
        CLOCK_SKEW_TOLERANCE: Offset applied to every generated not-before
        CERTIFICATE_MAX_DURATION: Default/maximum lifetime of a leaf certificate
        CA_CERTIFICATE_MAX_DURATION: Default/maximum lifetime of an issuing or root certificate
        RSA_PUBLIC_EXPONENT: Public exponent used for every generated RSA key
        DEFAULT_KEY_TYPE: Key type used when the caller does not pick one
        TLS_KEY_USAGES: Key usages of a TLS server certificate
        TLS_EXT_KEY_USAGES: Extended key usages of a TLS server certificate
        CA_KEY_USAGES: Key usages of a root certificate
    """

    # Validità certificati
    CLOCK_SKEW_TOLERANCE: timedelta = timedelta(hours=2)
    CERTIFICATE_MAX_DURATION: timedelta = timedelta(days=398) - timedelta(hours=2)
    CA_CERTIFICATE_MAX_DURATION: timedelta = timedelta(hours=8760 * 25) - timedelta(hours=2)

    # Chiavi
    RSA_PUBLIC_EXPONENT: int = 65537
    DEFAULT_KEY_TYPE: str = "ecp256"

    # Profili di utilizzo
    TLS_KEY_USAGES: Tuple[str, ...] = ("DigitalSignature",)
    TLS_EXT_KEY_USAGES: Tuple[str, ...] = ("ServerAuth",)
    CA_KEY_USAGES: Tuple[str, ...] = ("DigitalSignature", "CertSign", "CRLSign")


# Istanza singleton globale
PKI_CONSTANTS = PKIConstants()


def _level_from_env(default: int = logging.INFO) -> int:
    value = os.environ.get("PKI_LOG_LEVEL")
    if not value:
        return default
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    # getLevelName returns "Level X" for unknown names
    return level if isinstance(level, int) else default


def _log_dir_from_env() -> Optional[Path]:
    value = os.environ.get("PKI_LOG_DIR")
    return Path(value) if value else None


@dataclass(frozen=True)
class PKILoggingConfig:
    """
    Logging settings shared by every component logger.

    LEVEL and LOG_DIR are read once from PKI_LOG_LEVEL / PKI_LOG_DIR.
    """

    LEVEL: int = field(default_factory=_level_from_env)
    LOG_DIR: Optional[Path] = field(default_factory=_log_dir_from_env)
    CONSOLE_OUTPUT: bool = True
    FORMAT: str = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"
    DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"


PKI_LOGGING = PKILoggingConfig()
