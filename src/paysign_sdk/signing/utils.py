"""
Utility functions for request signing

This module provides the pure helpers behind the request signer: body
selection for digesting, SHA-512 body digests, UTC date formatting,
request-target construction and clock handling.
"""

import time
import hashlib
import base64
from datetime import datetime, timezone
from typing import Optional

from .types import (
    EMPTY_BODY_SENTINEL,
    InvalidBodyTypeError,
    RequestBody,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def select_digest_input(body: RequestBody) -> bytes:
    """
    Select the bytes that are digested for a request body.

    An absent or empty body is replaced by the single byte ``X``. Text bodies
    are encoded as UTF-8.

    Args:
        body: Serialized request body

    Returns:
        bytes: Bytes to digest

    Raises:
        InvalidBodyTypeError: If the body has not been serialized yet
    """
    if body is None:
        return EMPTY_BODY_SENTINEL

    if isinstance(body, str):
        data = body.encode('utf-8')
    elif isinstance(body, (bytes, bytearray, memoryview)):
        data = bytes(body)
    else:
        raise InvalidBodyTypeError(
            "Request body must be serialized to bytes or str before signing, "
            f"got {type(body).__name__}",
            {"body_type": type(body).__name__}
        )

    return data or EMPTY_BODY_SENTINEL


def calculate_body_digest(body: RequestBody) -> str:
    """
    Calculate the Digest header value for a request body.

    Args:
        body: Serialized request body (None or empty uses the ``X`` sentinel)

    Returns:
        str: Standard padded base64 of the SHA-512 digest
    """
    digest_bytes = hashlib.sha512(select_digest_input(body)).digest()
    return base64.b64encode(digest_bytes).decode('ascii')


def format_signature_date(timestamp: datetime) -> str:
    """
    Format a timestamp for the Date header.

    Naive datetimes are taken to be UTC. Sub-second precision is dropped.

    Args:
        timestamp: Point in time

    Returns:
        str: ISO-8601 UTC timestamp such as ``2024-01-01T00:00:00Z``
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    # isoformat zero-pads the year, strftime('%Y') does not on every platform
    utc = timestamp.astimezone(timezone.utc).replace(microsecond=0, tzinfo=None)
    return utc.isoformat() + 'Z'


def parse_signature_date(value: str) -> datetime:
    """
    Parse a Date header produced by format_signature_date.

    Raises:
        ValueError: If the value is not in ``YYYY-MM-DDTHH:MM:SSZ`` form
    """
    return datetime.strptime(value, '%Y-%m-%dT%H:%M:%SZ').replace(tzinfo=timezone.utc)


def build_request_target(method: str, path: str, query: Optional[str] = None) -> str:
    """
    Build the (request-target) value: lower-cased method, space, path and
    the raw query string when one is present.
    """
    target = f"{method.lower()} {path}"
    if query:
        target += f"?{query}"
    return target


def encode_base64(data: bytes) -> str:
    """Standard padded base64 as ASCII text."""
    return base64.b64encode(data).decode('ascii')


def decode_base64(value: str) -> bytes:
    """
    Decode standard base64.

    Raises:
        binascii.Error: If the value is not valid base64
    """
    return base64.b64decode(value, validate=True)


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def reset(self) -> None:
        """Reset the timer."""
        self.start_time = time.perf_counter()
