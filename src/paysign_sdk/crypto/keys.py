"""
RSA key loading and RSA-SHA256 primitives for PaySign Python SDK

This module loads PEM encoded RSA keys using the cryptography package and
wraps the PKCS#1 v1.5 / SHA-256 sign and verify operations used by the
request signer.
"""

import sys
import platform
from pathlib import Path
from typing import Dict, Optional, Union, Any

import cryptography
from cryptography.hazmat.primitives import serialization, hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm

from ..exceptions import KeyLoadError, CryptoOperationError, ValidationError

# Keys shorter than this are rejected on load
MIN_RSA_KEY_SIZE = 2048


def check_platform_compatibility() -> Dict[str, Any]:
    """
    Check platform compatibility for RSA-SHA256 signing.

    Returns:
        dict: Compatibility information including cryptography version,
              hash support and platform details
    """
    compatibility = {
        'cryptography_version': cryptography.__version__,
        'sha256_supported': False,
        'sha512_supported': False,
        'platform_info': {
            'system': platform.system(),
            'python_version': sys.version,
            'architecture': platform.architecture()[0],
        }
    }

    for name, algorithm in (('sha256_supported', hashes.SHA256()), ('sha512_supported', hashes.SHA512())):
        try:
            digest = hashes.Hash(algorithm)
            digest.update(b"X")
            digest.finalize()
            compatibility[name] = True
        except UnsupportedAlgorithm:
            compatibility[name] = False

    return compatibility


def _to_bytes(data: Union[str, bytes], what: str) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    raise ValidationError(f"{what} must be str or bytes", "INVALID_INPUT_TYPE")


def _check_key_size(key_size: int) -> None:
    if key_size < MIN_RSA_KEY_SIZE:
        raise KeyLoadError(
            f"RSA key must be at least {MIN_RSA_KEY_SIZE} bits, got {key_size}",
            "KEY_TOO_SMALL",
            {"key_size": key_size}
        )


def load_private_key(
    pem_data: Union[str, bytes],
    password: Optional[Union[str, bytes]] = None
) -> RSAPrivateKey:
    """
    Load an RSA private key from PEM data.

    Both PKCS#1 ("BEGIN RSA PRIVATE KEY") and PKCS#8 ("BEGIN PRIVATE KEY")
    encodings are accepted.

    Args:
        pem_data: PEM encoded private key
        password: Optional password for encrypted keys

    Returns:
        RSAPrivateKey: The loaded key

    Raises:
        KeyLoadError: If the data is not a usable RSA private key
    """
    data = _to_bytes(pem_data, "PEM data")
    if password is not None:
        password = _to_bytes(password, "Password")

    try:
        key = serialization.load_pem_private_key(data, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Failed to load private key: {e}", "INVALID_PRIVATE_KEY") from e

    if not isinstance(key, RSAPrivateKey):
        raise KeyLoadError(
            f"Expected an RSA private key, got {type(key).__name__}",
            "NOT_RSA_KEY"
        )

    _check_key_size(key.key_size)
    return key


def load_private_key_file(
    path: Union[str, Path],
    password: Optional[Union[str, bytes]] = None
) -> RSAPrivateKey:
    """Load an RSA private key from a PEM file."""
    try:
        pem_data = Path(path).read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Failed to read private key file: {e}", "FILE_ERROR", {"path": str(path)}) from e

    return load_private_key(pem_data, password)


def load_public_key(pem_data: Union[str, bytes]) -> RSAPublicKey:
    """
    Load an RSA public key from PEM data (SubjectPublicKeyInfo or PKCS#1).

    Raises:
        KeyLoadError: If the data is not an RSA public key
    """
    data = _to_bytes(pem_data, "PEM data")

    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"Failed to load public key: {e}", "INVALID_PUBLIC_KEY") from e

    if not isinstance(key, RSAPublicKey):
        raise KeyLoadError(
            f"Expected an RSA public key, got {type(key).__name__}",
            "NOT_RSA_KEY"
        )

    return key


def load_public_key_file(path: Union[str, Path]) -> RSAPublicKey:
    """Load an RSA public key from a PEM file."""
    try:
        pem_data = Path(path).read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Failed to read public key file: {e}", "FILE_ERROR", {"path": str(path)}) from e

    return load_public_key(pem_data)


def format_public_key(public_key: RSAPublicKey) -> str:
    """Serialize a public key as SubjectPublicKeyInfo PEM text."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode('ascii')


def sign_message(private_key: Any, message: Union[str, bytes]) -> bytes:
    """
    Sign a message with RSA PKCS#1 v1.5 and SHA-256.

    Args:
        private_key: RSAPrivateKey, or any handle exposing sign(bytes) -> bytes
        message: Message to sign (strings are UTF-8 encoded)

    Returns:
        bytes: Raw signature bytes

    Raises:
        CryptoOperationError: If signing fails
    """
    message_bytes = _to_bytes(message, "Message")

    try:
        if isinstance(private_key, RSAPrivateKey):
            signature = private_key.sign(message_bytes, padding.PKCS1v15(), hashes.SHA256())
        else:
            signature = private_key.sign(message_bytes)
    except Exception as e:
        raise CryptoOperationError(f"Message signing failed: {e}", "SIGNING_FAILED") from e

    if not isinstance(signature, (bytes, bytearray)) or not signature:
        raise CryptoOperationError(
            "Signing handle returned no signature bytes",
            "SIGNING_FAILED",
            {"returned_type": type(signature).__name__}
        )

    return bytes(signature)


def verify_signature(public_key: RSAPublicKey, message: Union[str, bytes], signature: bytes) -> bool:
    """
    Verify an RSA PKCS#1 v1.5 / SHA-256 signature.

    Returns:
        bool: True if signature is valid, False otherwise

    Raises:
        ValidationError: If inputs have the wrong type
    """
    if not isinstance(public_key, RSAPublicKey):
        raise ValidationError("Public key must be an RSA public key", "INVALID_PUBLIC_KEY_TYPE")

    if not isinstance(signature, bytes):
        raise ValidationError("Signature must be bytes", "INVALID_SIGNATURE_TYPE")

    message_bytes = _to_bytes(message, "Message")

    try:
        public_key.verify(signature, message_bytes, padding.PKCS1v15(), hashes.SHA256())
        return True
    except InvalidSignature:
        return False
