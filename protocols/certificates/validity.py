"""
Validity Window Policy

Pure functions computing default not-before / not-after timestamps.

- not-before is always two hours in the past, to tolerate clock skew
  across the issuance chain.
- not-after defaults to the maximum duration (398 days for leaf
  certificates, 25 years for issuing/root certificates, both minus two
  hours) and is clamped so that a certificate never outlives any authority
  of its chain.

Author: SecureRoad PKI Project
Date: October 2025
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

from cryptography import x509

from config.pki_config import PKI_CONSTANTS
from utils.cert_utils import get_certificate_expiry_time

Authority = Union[x509.Certificate, datetime]


def _now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _authority_expiry(authority: Authority) -> datetime:
    if isinstance(authority, x509.Certificate):
        return get_certificate_expiry_time(authority)
    return _now(authority)


def certificate_not_before(now: Optional[datetime] = None) -> datetime:
    """Not-before value: the current time minus the clock skew tolerance."""
    return _now(now) - PKI_CONSTANTS.CLOCK_SKEW_TOLERANCE


def certificate_not_after(
    duration: Optional[timedelta] = None,
    authorities: Iterable[Authority] = (),
    is_ca: bool = False,
    now: Optional[datetime] = None,
) -> datetime:
    """
    Calcola la data di scadenza di un certificato.

    Args:
        duration: Requested lifetime; None or zero selects the maximum default
        authorities: Authority certificates (or their expiry datetimes) of the
            issuance chain; the result never exceeds the earliest expiry
        is_ca: Selects the issuing/root default instead of the leaf default
        now: Reference time (default: current UTC time)

    Returns:
        Timezone-aware not-after timestamp
    """
    if not duration:
        duration = (
            PKI_CONSTANTS.CA_CERTIFICATE_MAX_DURATION
            if is_ca
            else PKI_CONSTANTS.CERTIFICATE_MAX_DURATION
        )

    proposed = _now(now) + duration

    for authority in authorities:
        expiry = _authority_expiry(authority)
        if proposed > expiry:
            proposed = expiry

    return proposed


def ca_certificate_not_after(
    duration: Optional[timedelta] = None,
    authorities: Iterable[Authority] = (),
    now: Optional[datetime] = None,
) -> datetime:
    """certificate_not_after() with the issuing/root certificate default (25 years)."""
    return certificate_not_after(duration, authorities, is_ca=True, now=now)
