"""
Pytest Configuration and Shared Fixtures

Fornisce fixture condivise per tutti i test:
- Root authority self-signed (EC P-256) e relativa chiave
- Coppie di chiavi RSA / EC pre-generate
- Subject standard e directory temporanee per i file PEM

Le fixture costose (generazione chiavi RSA, root authority) hanno scope
session: vengono create una sola volta per tutta la suite.

Author: SecureRoad PKI Project
Date: October 2025
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from protocols.core.crypto import generate_key_pair
from protocols.core.types import KeyType
from utils.certificate_maker import CertificateMaker, create_standard_subject


@pytest.fixture(scope="session")
def root_subject():
    """Subject della root authority di test"""
    return create_standard_subject("IT", "SecureRoad Test", "SecureRoad Test Root")


@pytest.fixture(scope="session")
def root_authority(root_subject):
    """
    Root authority self-signed (certificate, KeyPair).
    Scope: session (creata una volta per tutti i test).
    """
    return CertificateMaker.create_root_authority(root_subject, KeyType.ECP256)


@pytest.fixture(scope="session")
def root_certificate(root_authority):
    return root_authority[0]


@pytest.fixture(scope="session")
def root_key(root_authority):
    return root_authority[1]


@pytest.fixture(scope="session")
def ec_key_pair():
    """Chiave EC P-256 condivisa"""
    return generate_key_pair(KeyType.ECP256)


@pytest.fixture(scope="session")
def rsa_key_pair():
    """Chiave RSA 2048 condivisa (la generazione RSA e lenta)"""
    return generate_key_pair(KeyType.RSA2048)


@pytest.fixture(scope="function")
def pem_dir(tmp_path):
    """Directory temporanea per file PEM, eliminata automaticamente"""
    directory = tmp_path / "pem"
    directory.mkdir()
    return directory
