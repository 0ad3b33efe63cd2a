"""
Certificate Issuance Errors

Closed error taxonomy shared by every component of the issuance core.
Each exception carries its ErrorKind, a human-readable message and,
for the request/signing pipeline, the stage that failed.

Author: SecureRoad PKI Project
Date: October 2025
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of failure raised by the issuance core."""

    ENCODING = "encoding"
    DECODING = "decoding"
    UNKNOWN_USAGE = "unknown-usage"
    KEY_GENERATION = "key-generation"
    UNKNOWN_KEY_TYPE = "unknown-key-type"
    REQUEST_CREATION = "request-creation"
    SIGNING = "signing"
    PARSE = "parse"


class CertificateIssuanceError(Exception):
    """
    Base class of every error raised by the issuance core.

    Attributes:
        kind: ErrorKind of the failure
        message: Human-readable description
        stage: Pipeline stage that failed (optional)
    """

    kind: ErrorKind = ErrorKind.ENCODING

    def __init__(self, message: str, stage: Optional[str] = None):
        self.message = message
        self.stage = stage
        super().__init__(f"{stage}: {message}" if stage else message)


class EncodingError(CertificateIssuanceError):
    """An extension could not be marshaled."""

    kind = ErrorKind.ENCODING


class DecodingError(CertificateIssuanceError):
    """An extension record could not be unmarshaled."""

    kind = ErrorKind.DECODING


class WrongObjectIdentifierError(DecodingError):
    """The record's object identifier does not match the expected extension."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"unexpected OID {actual} (expected {expected})")


class TrailingBytesError(DecodingError):
    """Bytes were left over after decoding the extension value."""

    def __init__(self, oid: str, trailing: int):
        self.oid = oid
        self.trailing = trailing
        super().__init__(f"{trailing} trailing byte(s) after extension {oid}")


class UnknownUsageError(CertificateIssuanceError):
    """A key usage or extended key usage name is not known."""

    kind = ErrorKind.UNKNOWN_USAGE

    def __init__(self, name: str, extended: bool = False):
        self.name = name
        label = "extended key usage" if extended else "key usage"
        super().__init__(f"unknown {label}: {name}")


class KeyGenerationError(CertificateIssuanceError):
    """Key generation failed or the key type is not supported."""

    kind = ErrorKind.KEY_GENERATION


class UnknownKeyTypeError(CertificateIssuanceError):
    """Key material does not match any supported RSA length or EC curve."""

    kind = ErrorKind.UNKNOWN_KEY_TYPE

    def __init__(self, message: str = "unknown private key type"):
        super().__init__(message)


class RequestCreationError(CertificateIssuanceError):
    """Building or signing a certificate signing request failed."""

    kind = ErrorKind.REQUEST_CREATION


class SigningError(CertificateIssuanceError):
    """Building or signing a certificate failed."""

    kind = ErrorKind.SIGNING


class ParseError(CertificateIssuanceError):
    """Signed or PEM-encoded bytes could not be parsed back."""

    kind = ErrorKind.PARSE
