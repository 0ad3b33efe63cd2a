"""
PKI I/O Utilities - Serializzazione PEM di certificati, chiavi e richieste

Questo modulo centralizza la codifica PEM degli artefatti prodotti dal core
di emissione (certificati, chiavi private, certificate signing request) e il
caricamento di coppie certificato/chiave da file.

Block types:
- CERTIFICATE
- RSA PRIVATE KEY / EC PRIVATE KEY (traditional OpenSSL encoding)
- CERTIFICATE REQUEST
"""

import os
import re
from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from protocols.core.crypto import public_key_of, public_keys_match, unwrap_private_key
from protocols.core.errors import EncodingError, ParseError

CERTIFICATE_BLOCK_TYPE = "CERTIFICATE"
RSA_KEY_BLOCK_TYPE = "RSA PRIVATE KEY"
EC_KEY_BLOCK_TYPE = "EC PRIVATE KEY"
CERTIFICATE_REQUEST_BLOCK_TYPE = "CERTIFICATE REQUEST"

# Parse errors name the offending block by its index in the input
_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<type>[A-Z0-9 ]+)-----\r?\n(?P<body>.*?)-----END (?P=type)-----\r?\n?",
    re.DOTALL,
)


def _pem_blocks(data: bytes) -> List[Tuple[str, bytes, bytes]]:
    """Split PEM data into (block type, body, full block) tuples, in order."""
    return [
        (match.group("type").decode("ascii"), match.group("body"), match.group(0))
        for match in _PEM_BLOCK.finditer(data)
    ]


# ============================================================================
# ENCODING
# ============================================================================


def encode_certificates(*certificates: x509.Certificate) -> bytes:
    """Concatenated CERTIFICATE blocks, in argument order."""
    return b"".join(
        certificate.public_bytes(serialization.Encoding.PEM) for certificate in certificates
    )


def encode_private_keys(*keys) -> bytes:
    """
    Concatenated RSA PRIVATE KEY / EC PRIVATE KEY blocks.

    Args:
        *keys: Private keys or KeyPairs

    Raises:
        EncodingError: If a key is neither RSA nor EC
    """
    encoded = []
    for key in keys:
        private_key = unwrap_private_key(key)
        if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            raise EncodingError(f"unknown type for encoding key: {type(private_key).__name__}")
        encoded.append(
            private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
    return b"".join(encoded)


def encode_requests(*requests) -> bytes:
    """Concatenated CERTIFICATE REQUEST blocks (CertificateRequest or cryptography CSRs)."""
    encoded = []
    for request in requests:
        if isinstance(request, x509.CertificateSigningRequest):
            encoded.append(request.public_bytes(serialization.Encoding.PEM))
        else:
            encoded.append(request.to_pem())
    return b"".join(encoded)


# ============================================================================
# DECODING
# ============================================================================


def load_certificates_from_pem(data: bytes) -> List[x509.Certificate]:
    """
    Carica uno o piu certificati da dati PEM.

    Blocks of other types, and certificate blocks carrying headers, are
    skipped.

    Raises:
        ParseError: Naming the index of the first unparsable certificate block
    """
    certificates = []
    for index, (block_type, body, block) in enumerate(_pem_blocks(data)):
        if block_type != CERTIFICATE_BLOCK_TYPE or b":" in body:
            continue
        try:
            certificates.append(x509.load_pem_x509_certificate(block))
        except ValueError as e:
            raise ParseError(f"could not parse PEM certificate: error on block {index}") from e
    return certificates


def load_private_keys_from_pem(data: bytes) -> list:
    """
    Carica una o piu chiavi private (RSA / EC) da dati PEM.

    Raises:
        ParseError: Naming the index of the first unparsable key block
    """
    keys = []
    for index, (block_type, _, block) in enumerate(_pem_blocks(data)):
        if block_type not in (RSA_KEY_BLOCK_TYPE, EC_KEY_BLOCK_TYPE):
            continue
        try:
            keys.append(serialization.load_pem_private_key(block, password=None))
        except (ValueError, TypeError) as e:
            raise ParseError(f"could not parse PEM private key: error on block {index}") from e
    return keys


# ============================================================================
# FILES
# ============================================================================


class PKIFileHandler:
    """Handler centralizzato per operazioni I/O su chiavi e certificati PKI"""

    @staticmethod
    def save_certificate(certificate: x509.Certificate, cert_path: str, create_dirs: bool = True):
        """
        Salva certificato su file PEM.

        Args:
            certificate: Certificato X.509 da salvare
            cert_path: Path dove salvare il certificato
            create_dirs: Se True, crea directory se non esiste
        """
        if create_dirs and os.path.dirname(cert_path):
            os.makedirs(os.path.dirname(cert_path), exist_ok=True)

        with open(cert_path, "wb") as f:
            f.write(encode_certificates(certificate))

    @staticmethod
    def save_private_key(private_key, key_path: str, create_dirs: bool = True):
        """
        Salva chiave privata su file PEM (RSA PRIVATE KEY / EC PRIVATE KEY).

        Args:
            private_key: Chiave privata (o KeyPair) da salvare
            key_path: Path dove salvare la chiave
            create_dirs: Se True, crea directory se non esiste
        """
        if create_dirs and os.path.dirname(key_path):
            os.makedirs(os.path.dirname(key_path), exist_ok=True)

        with open(key_path, "wb") as f:
            f.write(encode_private_keys(private_key))

    @staticmethod
    def load_certificates(cert_path: str) -> List[x509.Certificate]:
        """
        Carica tutti i certificati da un file PEM.

        Raises:
            FileNotFoundError: Se il file non esiste
            ParseError: Se un blocco non e valido
        """
        with open(cert_path, "rb") as f:
            return load_certificates_from_pem(f.read())

    @staticmethod
    def load_x509_key_pair(
        cert_file: str, key_file: str
    ) -> Tuple[List[x509.Certificate], Optional[object]]:
        """
        Carica una catena di certificati e la relativa chiave privata.

        Args:
            cert_file: PEM file with the leaf certificate first
            key_file: PEM file with the private key

        Returns:
            (certificates, private_key)

        Raises:
            FileNotFoundError: Se uno dei file non esiste
            ParseError: If either file holds no usable block, or the key
                does not belong to the leaf certificate
        """
        with open(cert_file, "rb") as f:
            certificates = load_certificates_from_pem(f.read())
        if not certificates:
            raise ParseError(f"no certificate found in {cert_file}")

        with open(key_file, "rb") as f:
            keys = load_private_keys_from_pem(f.read())
        if not keys:
            raise ParseError(f"no private key found in {key_file}")

        private_key = keys[0]
        if not public_keys_match(public_key_of(private_key), public_key_of(certificates[0])):
            raise ParseError("private key does not match public key")

        return certificates, private_key
