"""
Shared fixtures for the PaySign SDK test suite
"""

import logging
from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from paysign_sdk.signing import SigningKeyMaterial

TEST_KEY_ID = "7d0b3a0a-f0f9-4579-b7fa-9c091d243d48"
FIXED_TIME = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def private_key():
    """2048-bit RSA key shared by the whole session"""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key(private_key):
    return private_key.public_key()


@pytest.fixture(scope="session")
def other_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def key_material(private_key):
    return SigningKeyMaterial(key_id=TEST_KEY_ID, private_key=private_key)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def private_key_pem(private_key):
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@pytest.fixture
def public_key_pem(public_key):
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )


@pytest.fixture
def private_key_file(tmp_path, private_key_pem):
    path = tmp_path / "private.pem"
    path.write_bytes(private_key_pem)
    return path


@pytest.fixture
def public_key_file(tmp_path, public_key_pem):
    path = tmp_path / "public.pem"
    path.write_bytes(public_key_pem)
    return path


@pytest.fixture(autouse=True)
def reset_sdk_logger():
    """Drop handlers installed by configure_logging between tests"""
    yield
    logger = logging.getLogger("paysign_sdk")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
