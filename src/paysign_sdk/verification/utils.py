"""
Utility functions for signature verification

This module provides header extraction, body digest comparison and date
freshness checks used by the request verifier.
"""

import binascii
import hmac
from datetime import datetime, timedelta
from typing import Optional, Union, Mapping

from .types import (
    ExtractedSignatureData,
    VerificationError,
    VerificationErrorCodes,
)
from ..signing.types import (
    AUTHORIZATION_HEADER,
    DIGEST_HEADER,
    DATE_HEADER,
    RequestBody,
)
from ..signing.string_to_sign import parse_authorization_header
from ..signing.utils import calculate_body_digest, parse_signature_date, decode_base64


def find_header_case_insensitive(headers: Mapping[str, str], target_name: str) -> Optional[str]:
    """Find header with case-insensitive lookup"""
    target_lower = target_name.lower()
    for key, value in headers.items():
        if key.lower() == target_lower:
            return value
    return None


def _require_header(headers: Mapping[str, str], name: str) -> str:
    value = find_header_case_insensitive(headers, name)
    if value is None:
        raise VerificationError(
            f"Missing {name} header",
            VerificationErrorCodes.MISSING_HEADER,
            {"header": name}
        )
    return value


def extract_signature_data(headers: Mapping[str, str]) -> ExtractedSignatureData:
    """
    Extract signature data from HTTP headers

    Args:
        headers: HTTP headers of the signed request

    Returns:
        ExtractedSignatureData: Extracted signature information

    Raises:
        VerificationError: If a header is missing or malformed
    """
    authorization = _require_header(headers, AUTHORIZATION_HEADER)
    date = _require_header(headers, DATE_HEADER)
    digest = _require_header(headers, DIGEST_HEADER)

    try:
        params = parse_authorization_header(authorization)
    except ValueError as e:
        raise VerificationError(
            f"Invalid Authorization header: {e}",
            VerificationErrorCodes.INVALID_AUTHORIZATION_FORMAT
        ) from e

    try:
        signature = decode_base64(params['signature'])
    except (binascii.Error, ValueError) as e:
        raise VerificationError(
            f"Signature is not valid base64: {e}",
            VerificationErrorCodes.INVALID_AUTHORIZATION_FORMAT
        ) from e

    try:
        return ExtractedSignatureData(
            key_id=params['keyid'],
            algorithm=params['algorithm'],
            signed_headers=params['headers'],
            signature=signature,
            date=date,
            digest=digest
        )
    except ValueError as e:
        raise VerificationError(
            f"Invalid Authorization header: {e}",
            VerificationErrorCodes.INVALID_AUTHORIZATION_FORMAT
        ) from e


def verify_body_digest(body: RequestBody, digest: str) -> bool:
    """
    Check a Digest header against the received body.

    Bodiless requests are compared against the digest of the ``X`` sentinel.
    """
    expected = calculate_body_digest(body)
    return hmac.compare_digest(expected.encode('ascii'), digest.encode('ascii', 'replace'))


def check_date_freshness(
    date: str,
    now: datetime,
    max_clock_skew: Optional[Union[int, float, timedelta]] = None
) -> bool:
    """
    Check that a Date header is well formed and, when a skew is given,
    within that distance of ``now`` in either direction.
    """
    try:
        signed_at = parse_signature_date(date)
    except ValueError:
        return False

    if max_clock_skew is None:
        return True

    if not isinstance(max_clock_skew, timedelta):
        max_clock_skew = timedelta(seconds=max_clock_skew)

    return abs(now - signed_at) <= max_clock_skew

