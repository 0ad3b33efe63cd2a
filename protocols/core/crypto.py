"""
Key Material Provider

Generates RSA / EC private keys of the supported types, classifies existing
keys back into their KeyType and extracts public keys from keys,
certificates and certificate requests.

P-224 is intentionally not offered (several distributions disable it).

Author: SecureRoad PKI Project
Date: October 2025
"""

from dataclasses import dataclass
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from config.pki_config import PKI_CONSTANTS
from protocols.core.errors import KeyGenerationError, UnknownKeyTypeError
from protocols.core.types import KeyType, PublicKeyAlgorithm
from utils.logger import PKILogger

logger = PKILogger.get_logger("KeyMaterial")

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]
PublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey]

_RSA_KEY_SIZES = {
    KeyType.RSA2048: 2048,
    KeyType.RSA3072: 3072,
    KeyType.RSA4096: 4096,
}

_EC_CURVES = {
    KeyType.ECP256: ec.SECP256R1,
    KeyType.ECP384: ec.SECP384R1,
    KeyType.ECP521: ec.SECP521R1,
}

# Reverse lookups used by get_private_key_type()
_RSA_TYPES_BY_SIZE = {size: key_type for key_type, size in _RSA_KEY_SIZES.items()}
_EC_TYPES_BY_CURVE = {curve.name: key_type for key_type, curve in _EC_CURVES.items()}


@dataclass(frozen=True)
class KeyPair:
    """
    Private key tagged with the KeyType it was generated as.

    The issuance core never persists it: ownership passes to the caller.
    """

    key_type: KeyType
    private_key: PrivateKey

    @property
    def public_key(self) -> PublicKey:
        return self.private_key.public_key()

    @property
    def algorithm(self) -> PublicKeyAlgorithm:
        return self.key_type.algorithm


# ============================================================================
# KEY GENERATION
# ============================================================================


def generate_private_key(key_type: Union[KeyType, str]) -> PrivateKey:
    """
    Genera una nuova chiave privata del tipo richiesto.

    Args:
        key_type: KeyType (or its name, e.g. "rsa2048", "ecp384")

    Returns:
        RSA or EC private key

    Raises:
        KeyGenerationError: Unknown key type or failure of the primitive
    """
    key_type = KeyType.parse(key_type)

    try:
        if key_type in _RSA_KEY_SIZES:
            return rsa.generate_private_key(
                public_exponent=PKI_CONSTANTS.RSA_PUBLIC_EXPONENT,
                key_size=_RSA_KEY_SIZES[key_type],
            )
        if key_type in _EC_CURVES:
            return ec.generate_private_key(_EC_CURVES[key_type]())
    except (ValueError, TypeError) as e:
        raise KeyGenerationError(f"failed to generate {key_type.value} key: {e}") from e

    raise KeyGenerationError(f"unknown key type: {key_type.value}")


def generate_key_pair(key_type: Union[KeyType, str]) -> KeyPair:
    """Generate a private key and tag it with its KeyType."""
    key_type = KeyType.parse(key_type)
    private_key = generate_private_key(key_type)
    logger.info(f"Generated {key_type.value} private key")
    return KeyPair(key_type=key_type, private_key=private_key)


# ============================================================================
# CLASSIFICATION
# ============================================================================


def get_private_key_type(key) -> KeyType:
    """
    Recover the KeyType of an existing private key.

    RSA keys are classified by modulus bit length, EC keys by curve name;
    anything else is unknown.

    Raises:
        UnknownKeyTypeError: If the key matches no supported type
    """
    if isinstance(key, KeyPair):
        key = key.private_key

    if isinstance(key, rsa.RSAPrivateKey):
        key_type = _RSA_TYPES_BY_SIZE.get(key.key_size)
        if key_type is None:
            raise UnknownKeyTypeError(f"unsupported RSA key size: {key.key_size}")
        return key_type

    if isinstance(key, ec.EllipticCurvePrivateKey):
        key_type = _EC_TYPES_BY_CURVE.get(key.curve.name)
        if key_type is None:
            raise UnknownKeyTypeError(f"unsupported EC curve: {key.curve.name}")
        return key_type

    raise UnknownKeyTypeError()


def public_key_algorithm_of(public_key) -> Optional[PublicKeyAlgorithm]:
    """Return the algorithm of a public key, or None for unsupported keys."""
    if isinstance(public_key, rsa.RSAPublicKey):
        return PublicKeyAlgorithm.RSA
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return PublicKeyAlgorithm.EC
    return None


def public_key_of(obj) -> Optional[PublicKey]:
    """
    Extract the public key from a private key, KeyPair, certificate or CSR.

    Returns:
        The public key, or None for unrecognized input
    """
    if isinstance(obj, KeyPair):
        return obj.public_key
    if isinstance(obj, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        return obj.public_key()
    if isinstance(obj, (x509.Certificate, x509.CertificateSigningRequest)):
        public_key = obj.public_key()
        if public_key_algorithm_of(public_key) is None:
            return None
        return public_key
    # CertificateRequest from protocols.certificates.request
    public_key = getattr(obj, "public_key", None)
    if public_key_algorithm_of(public_key) is not None:
        return public_key
    return None


def signature_hash_for(key) -> hashes.HashAlgorithm:
    """
    Hash algorithm used when signing with the given private (or public) key.

    SHA-256 for RSA and P-256, SHA-384 for P-384, SHA-512 for P-521.
    """
    if isinstance(key, KeyPair):
        key = key.private_key
    if isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        if key.curve.name == ec.SECP384R1.name:
            return hashes.SHA384()
        if key.curve.name == ec.SECP521R1.name:
            return hashes.SHA512()
    return hashes.SHA256()


def unwrap_private_key(key) -> PrivateKey:
    """Return the raw private key of a KeyPair, or the key itself."""
    if isinstance(key, KeyPair):
        return key.private_key
    return key


def public_keys_match(first, second) -> bool:
    """True when both public keys encode to the same SubjectPublicKeyInfo."""
    if first is None or second is None:
        return False
    encoding = serialization.Encoding.DER
    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    return first.public_bytes(encoding, spki) == second.public_bytes(encoding, spki)
