"""
Configuration management for request signing

This module provides a fluent builder that assembles the key identifier,
the private-key handle and an optional clock into signing key material and
ready-to-use signers.
"""

from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..crypto.keys import load_private_key, load_private_key_file
from ..exceptions import KeyLoadError
from .types import (
    SigningKeyMaterial,
    PrivateKeyHandle,
    SigningError,
    SigningErrorCodes,
    Clock,
)
from .signer import RequestSigner


class SigningConfigBuilder:
    """
    Builder for creating signing key material with fluent API
    """

    def __init__(self):
        self._key_id: Optional[str] = None
        self._private_key: Optional[Union[RSAPrivateKey, PrivateKeyHandle]] = None
        self._clock: Optional[Clock] = None

    def key_id(self, key_id: str) -> 'SigningConfigBuilder':
        """
        Set key identifier.

        Args:
            key_id: Key identifier the server uses to find the public key

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._key_id = key_id
        return self

    def private_key(self, private_key: Union[RSAPrivateKey, PrivateKeyHandle]) -> 'SigningConfigBuilder':
        """
        Set an already loaded private key or signing handle.

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._private_key = private_key
        return self

    def private_key_pem(
        self,
        pem_data: Union[str, bytes],
        password: Optional[Union[str, bytes]] = None
    ) -> 'SigningConfigBuilder':
        """
        Load the private key from PEM data.

        Raises:
            SigningError: If the PEM data is not a usable RSA key
        """
        self._private_key = self._load(lambda: load_private_key(pem_data, password))
        return self

    def private_key_file(
        self,
        path: Union[str, Path],
        password: Optional[Union[str, bytes]] = None
    ) -> 'SigningConfigBuilder':
        """
        Load the private key from a PEM file.

        Raises:
            SigningError: If the file cannot be read or is not an RSA key
        """
        self._private_key = self._load(lambda: load_private_key_file(path, password))
        return self

    def clock(self, clock: Clock) -> 'SigningConfigBuilder':
        """
        Set the clock used for requests without an explicit timestamp.

        Args:
            clock: Function returning a timezone-aware datetime

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._clock = clock
        return self

    def build(self) -> SigningKeyMaterial:
        """
        Build the signing key material.

        Returns:
            SigningKeyMaterial: Key identifier plus private key

        Raises:
            SigningError: If configuration is incomplete or invalid
        """
        if not self._key_id:
            raise SigningError(
                "Key ID is required",
                SigningErrorCodes.INVALID_KEY_ID
            )

        if self._private_key is None:
            raise SigningError(
                "Private key is required",
                SigningErrorCodes.INVALID_CONFIG
            )

        return create_key_material(self._key_id, self._private_key)

    def build_signer(self) -> RequestSigner:
        """Build a signer bound to the configured key and clock."""
        return RequestSigner(self.build(), self._clock)

    @staticmethod
    def _load(loader) -> RSAPrivateKey:
        try:
            return loader()
        except KeyLoadError as e:
            raise SigningError(
                f"Invalid private key: {e}",
                SigningErrorCodes.INVALID_PRIVATE_KEY,
                {"key_error_code": e.error_code}
            ) from e


def create_signing_config() -> SigningConfigBuilder:
    """
    Create a new signing configuration builder.

    Returns:
        SigningConfigBuilder: New configuration builder
    """
    return SigningConfigBuilder()


def create_key_material(
    key_id: str,
    private_key: Union[RSAPrivateKey, PrivateKeyHandle]
) -> SigningKeyMaterial:
    """
    Create signing key material.

    Raises:
        SigningError: If the key ID or private key is invalid
    """
    try:
        return SigningKeyMaterial(key_id=key_id, private_key=private_key)
    except ValueError as e:
        code = SigningErrorCodes.INVALID_KEY_ID if 'Key ID' in str(e) else SigningErrorCodes.INVALID_PRIVATE_KEY
        raise SigningError(str(e), code) from e
