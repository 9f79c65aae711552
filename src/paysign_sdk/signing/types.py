"""
Type definitions for request signing functionality

This module provides the value objects and error types used to sign outgoing
HTTP requests with RSA-SHA256 and a SHA-512 body digest.
"""

from datetime import datetime
from typing import Dict, Optional, Union, Callable, Any, Protocol, runtime_checkable
from dataclasses import dataclass
from enum import Enum

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey


class SignatureAlgorithm(str, Enum):
    """Signature algorithm names as they appear in the Authorization header"""
    RSA_SHA256 = "rsa-sha256"


# Literal parts of the wire contract
AUTHORIZATION_HEADER = "Authorization"
DIGEST_HEADER = "Digest"
DATE_HEADER = "Date"
SIGNED_HEADERS = "(request-target) Date Digest"
EMPTY_BODY_SENTINEL = b"X"


@runtime_checkable
class PrivateKeyHandle(Protocol):
    """Anything that can produce an RSA-SHA256 signature over raw bytes"""

    def sign(self, data: bytes) -> bytes:
        ...


@dataclass(frozen=True)
class SigningRequest:
    """
    Request to be signed

    Attributes:
        method: HTTP verb (any case)
        path: Request path without scheme or host
        query: Raw query string without the leading '?'
        body: Final serialized body as it will be transmitted
        timestamp: Signing time; the signer's clock is read when None
    """
    method: str
    path: str
    query: Optional[str] = None
    body: Optional[Union[bytes, str]] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class SigningKeyMaterial:
    """
    Key identifier plus private-key handle used for signing

    Attributes:
        key_id: Identifier the server uses to look up the public key
        private_key: RSA private key or a PrivateKeyHandle
    """
    key_id: str
    private_key: Union[RSAPrivateKey, PrivateKeyHandle]

    def __post_init__(self):
        if not self.key_id or not isinstance(self.key_id, str):
            raise ValueError("Key ID must be a non-empty string")

        if not isinstance(self.private_key, (RSAPrivateKey, PrivateKeyHandle)):
            raise ValueError("Private key must be an RSA private key or expose sign(bytes)")

    def __repr__(self) -> str:
        return f"SigningKeyMaterial(key_id='{self.key_id}')"


@dataclass(frozen=True)
class SignatureHeaders:
    """
    Headers produced by the signer

    Attributes:
        authorization: Authorization header value
        digest: Digest header value (base64 SHA-512)
        date: Date header value, identical to the Date line that was signed
        string_to_sign: The exact text that was signed (never transmitted)
    """
    authorization: str
    digest: str
    date: str
    string_to_sign: str

    @property
    def headers(self) -> Dict[str, str]:
        """Headers to merge into the outgoing request, in wire order"""
        return {
            AUTHORIZATION_HEADER: self.authorization,
            DIGEST_HEADER: self.digest,
            DATE_HEADER: self.date,
        }


class SigningError(Exception):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_PRIVATE_KEY = "INVALID_PRIVATE_KEY"
    INVALID_KEY_ID = "INVALID_KEY_ID"

    # Request errors
    INVALID_BODY_TYPE = "INVALID_BODY_TYPE"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"

    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"
    SIGNING_PRIMITIVE_FAILURE = "SIGNING_PRIMITIVE_FAILURE"


class InvalidBodyTypeError(SigningError):
    """Body is present but is not a definite byte sequence (not yet serialized)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, SigningErrorCodes.INVALID_BODY_TYPE, details)


class SigningPrimitiveError(SigningError):
    """The underlying RSA-SHA256 sign operation failed"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, SigningErrorCodes.SIGNING_PRIMITIVE_FAILURE, details)


# Type aliases for convenience
Clock = Callable[[], datetime]
RequestBody = Union[bytes, str, None]
