"""
RSA-SHA256 request signer

This module provides the main signer: it digests the serialized body,
builds the string-to-sign from the request-target, date and digest, signs
it with the caller's RSA key and returns the Authorization, Digest and Date
headers to merge into the outgoing request.
"""

import logging
from datetime import datetime
from typing import Optional

from ..crypto.keys import sign_message
from ..exceptions import CryptoOperationError
from .types import (
    SigningRequest,
    SigningKeyMaterial,
    SignatureHeaders,
    SigningError,
    SigningErrorCodes,
    SigningPrimitiveError,
    Clock,
)
from .utils import (
    calculate_body_digest,
    format_signature_date,
    build_request_target,
    encode_base64,
    utc_now,
    PerformanceTimer,
)
from .string_to_sign import build_string_to_sign, build_authorization_header

logger = logging.getLogger(__name__)

# Signing slower than this is logged as a warning
SLOW_SIGNING_THRESHOLD_MS = 10


class RequestSigner:
    """
    Request signer producing Authorization, Digest and Date headers.

    A signer holds no per-request state and can be shared between threads.
    """

    def __init__(
        self,
        key: Optional[SigningKeyMaterial] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the signer.

        Args:
            key: Default key material used when sign() is called without one
            clock: Callable returning the current time; used for requests
                without an explicit timestamp

        Raises:
            SigningError: If key is not SigningKeyMaterial
        """
        if key is not None and not isinstance(key, SigningKeyMaterial):
            raise SigningError(
                "Key must be a SigningKeyMaterial instance",
                SigningErrorCodes.INVALID_CONFIG,
                {"key_type": type(key).__name__}
            )

        self.key = key
        self.clock = clock or utc_now

    def sign(
        self,
        request: SigningRequest,
        key: Optional[SigningKeyMaterial] = None
    ) -> SignatureHeaders:
        """
        Sign a request.

        Args:
            request: Request to sign; its body must already be serialized
            key: Key material, defaults to the key given at construction

        Returns:
            SignatureHeaders: Authorization, Digest and Date headers

        Raises:
            InvalidBodyTypeError: If the body is not bytes or str
            SigningPrimitiveError: If the RSA sign operation fails
            SigningError: For any other signing failure
        """
        timer = PerformanceTimer()
        key = key or self.key

        if key is None:
            raise SigningError(
                "No signing key configured",
                SigningErrorCodes.INVALID_CONFIG
            )

        try:
            timestamp = self._resolve_timestamp(request)

            digest = calculate_body_digest(request.body)
            date = format_signature_date(timestamp)
            request_target = build_request_target(request.method, request.path, request.query)
            string_to_sign = build_string_to_sign(request_target, date, digest)

            signature = encode_base64(self._sign_string(string_to_sign, key))

            result = SignatureHeaders(
                authorization=build_authorization_header(key.key_id, signature),
                digest=digest,
                date=date,
                string_to_sign=string_to_sign
            )

        except Exception as e:
            if isinstance(e, SigningError):
                raise

            raise SigningError(
                f"Request signing failed: {e}",
                SigningErrorCodes.SIGNING_FAILED,
                {"original_error": str(e)}
            ) from e

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > SLOW_SIGNING_THRESHOLD_MS:
            logger.warning(f"Signing operation took {elapsed_ms:.2f}ms (target: <{SLOW_SIGNING_THRESHOLD_MS}ms)")

        logger.debug(f"Signed '{request_target}' with key ID {key.key_id}")
        return result

    def _resolve_timestamp(self, request: SigningRequest) -> datetime:
        timestamp = request.timestamp
        if timestamp is None:
            timestamp = self.clock()

        if not isinstance(timestamp, datetime):
            raise SigningError(
                f"Timestamp must be a datetime, got {type(timestamp).__name__}",
                SigningErrorCodes.INVALID_TIMESTAMP,
                {"timestamp": repr(timestamp)}
            )

        return timestamp

    def _sign_string(self, string_to_sign: str, key: SigningKeyMaterial) -> bytes:
        """
        Sign the UTF-8 bytes of the string-to-sign.

        Raises:
            SigningPrimitiveError: If the key handle fails
        """
        try:
            return sign_message(key.private_key, string_to_sign.encode('utf-8'))
        except CryptoOperationError as e:
            raise SigningPrimitiveError(
                f"RSA-SHA256 signing failed for key ID {key.key_id}: {e}",
                {"key_id": key.key_id, "original_error": str(e)}
            ) from e


def create_signer(
    key: Optional[SigningKeyMaterial] = None,
    clock: Optional[Clock] = None
) -> RequestSigner:
    """
    Create a new request signer.

    Args:
        key: Default key material
        clock: Optional clock for requests without a timestamp

    Returns:
        RequestSigner: Configured signer instance
    """
    return RequestSigner(key, clock)


def sign_request(
    request: SigningRequest,
    key: SigningKeyMaterial,
    clock: Optional[Clock] = None
) -> SignatureHeaders:
    """
    Sign a request with the given key material.

    Args:
        request: Request to sign
        key: Key material
        clock: Optional clock for requests without a timestamp

    Returns:
        SignatureHeaders: Signing result
    """
    return RequestSigner(clock=clock).sign(request, key)
