"""
Signature verification for signed requests

This module checks a request signed by RequestSigner the way a receiving
server does: it parses the Authorization header, recomputes the body digest,
rebuilds the string-to-sign from the received Date and Digest headers and
verifies the RSA-SHA256 signature with the public key registered for the
key identifier.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Union, Mapping
from urllib.parse import urlsplit

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from requests.models import PreparedRequest

from .types import (
    VerificationResult,
    VerificationStatus,
    VerificationError,
    VerificationErrorCodes,
)
from .utils import (
    extract_signature_data,
    verify_body_digest,
    check_date_freshness,
)
from ..crypto.keys import verify_signature
from ..signing.types import SignatureAlgorithm, SIGNED_HEADERS, RequestBody
from ..signing.string_to_sign import build_string_to_sign
from ..signing.utils import build_request_target, utc_now, PerformanceTimer

logger = logging.getLogger(__name__)

# Verification slower than this is logged as a warning
SLOW_VERIFICATION_THRESHOLD_MS = 50


class RequestVerifier:
    """
    Verifier for RSA-SHA256 signed requests.
    """

    def __init__(
        self,
        public_keys: Optional[Dict[str, RSAPublicKey]] = None,
        max_clock_skew: Optional[Union[int, float, timedelta]] = None
    ):
        """
        Initialize the verifier.

        Args:
            public_keys: Mapping of key identifier to RSA public key
            max_clock_skew: Optional freshness window for the Date header
                (seconds or timedelta); no window is enforced when None

        Raises:
            VerificationError: If a public key is not an RSA public key
        """
        self.public_keys: Dict[str, RSAPublicKey] = {}
        self.max_clock_skew = max_clock_skew

        for key_id, public_key in (public_keys or {}).items():
            self.add_public_key(key_id, public_key)

    def add_public_key(self, key_id: str, public_key: RSAPublicKey) -> None:
        """
        Register a public key for a key identifier

        Raises:
            VerificationError: If the key is not an RSA public key
        """
        if not isinstance(public_key, RSAPublicKey):
            raise VerificationError(
                'Public key must be an RSA public key',
                VerificationErrorCodes.INVALID_PUBLIC_KEY,
                {'key_id': key_id}
            )

        self.public_keys[key_id] = public_key

    def remove_public_key(self, key_id: str) -> None:
        """Remove public key from configuration"""
        self.public_keys.pop(key_id, None)

    def verify(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str],
        query: Optional[str] = None,
        body: RequestBody = None,
        now: Optional[datetime] = None
    ) -> VerificationResult:
        """
        Verify a signed request

        Args:
            method: HTTP method as received
            path: Request path as received
            headers: Received request headers
            query: Raw query string, if any
            body: Received body bytes
            now: Time to check freshness against (defaults to current UTC time)

        Returns:
            VerificationResult: Outcome with per-check details
        """
        timer = PerformanceTimer()

        try:
            result = self._perform_verification(method, path, headers, query, body, now)
        except VerificationError as error:
            return VerificationResult.create_error(error.code, error.message, error.details)
        except Exception as error:
            return VerificationResult.create_error(
                VerificationErrorCodes.VERIFICATION_FAILED,
                f"Verification failed: {error}",
                {'original_error': str(error)}
            )

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > SLOW_VERIFICATION_THRESHOLD_MS:
            logger.warning(f"Verification took {elapsed_ms:.2f}ms (target: <{SLOW_VERIFICATION_THRESHOLD_MS}ms)")

        return result

    def verify_prepared_request(
        self,
        prepared_request: PreparedRequest,
        now: Optional[datetime] = None
    ) -> VerificationResult:
        """Verify a signed requests.PreparedRequest"""
        parts = urlsplit(prepared_request.url)
        return self.verify(
            method=prepared_request.method,
            path=parts.path,
            headers=prepared_request.headers,
            query=parts.query or None,
            body=prepared_request.body,
            now=now
        )

    def _perform_verification(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str],
        query: Optional[str],
        body: RequestBody,
        now: Optional[datetime]
    ) -> VerificationResult:
        signature_data = extract_signature_data(headers)

        if signature_data.algorithm != SignatureAlgorithm.RSA_SHA256.value:
            raise VerificationError(
                f"Unsupported algorithm: {signature_data.algorithm}",
                VerificationErrorCodes.UNSUPPORTED_ALGORITHM,
                {'key_id': signature_data.key_id, 'algorithm': signature_data.algorithm}
            )

        if signature_data.signed_headers != SIGNED_HEADERS:
            raise VerificationError(
                f"Unexpected signed headers: {signature_data.signed_headers}",
                VerificationErrorCodes.UNEXPECTED_SIGNED_HEADERS,
                {'key_id': signature_data.key_id, 'headers': signature_data.signed_headers}
            )

        public_key = self.public_keys.get(signature_data.key_id)
        if public_key is None:
            raise VerificationError(
                f"Public key not found for key ID: {signature_data.key_id}",
                VerificationErrorCodes.PUBLIC_KEY_NOT_FOUND,
                {'key_id': signature_data.key_id}
            )

        if now is None:
            now = utc_now()
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        string_to_sign = build_string_to_sign(
            build_request_target(method, path, query),
            signature_data.date,
            signature_data.digest
        )

        checks = {
            'format_valid': True,
            'algorithm_valid': True,
            'key_known': True,
            'content_digest_valid': verify_body_digest(body, signature_data.digest),
            'timestamp_valid': check_date_freshness(signature_data.date, now, self.max_clock_skew),
            'cryptographic_valid': verify_signature(public_key, string_to_sign, signature_data.signature),
        }

        errors = []
        error_codes = []
        if not checks['content_digest_valid']:
            errors.append('Digest header does not match the request body')
            error_codes.append(VerificationErrorCodes.CONTENT_DIGEST_VALIDATION_FAILED)
        if not checks['timestamp_valid']:
            errors.append(f"Date header is malformed or outside the allowed window: {signature_data.date}")
            error_codes.append(VerificationErrorCodes.TIMESTAMP_VALIDATION_FAILED)
        if not checks['cryptographic_valid']:
            errors.append('Signature does not match the reconstructed string-to-sign')
            error_codes.append(VerificationErrorCodes.SIGNATURE_VERIFICATION_FAILED)

        valid = all(checks.values())
        if not valid:
            logger.info(f"Rejected signature for key ID {signature_data.key_id}: {'; '.join(errors)}")

        return VerificationResult(
            status=VerificationStatus.VALID if valid else VerificationStatus.INVALID,
            signature_valid=valid,
            checks=checks,
            key_id=signature_data.key_id,
            string_to_sign=string_to_sign,
            errors=errors,
            error_codes=error_codes
        )


def create_verifier(
    public_keys: Optional[Dict[str, RSAPublicKey]] = None,
    max_clock_skew: Optional[Union[int, float, timedelta]] = None
) -> RequestVerifier:
    """
    Create a new request verifier

    Args:
        public_keys: Mapping of key identifier to RSA public key
        max_clock_skew: Optional freshness window for the Date header

    Returns:
        RequestVerifier: Configured verifier instance
    """
    return RequestVerifier(public_keys, max_clock_skew)


def verify_request(
    method: str,
    path: str,
    headers: Mapping[str, str],
    public_key: RSAPublicKey,
    query: Optional[str] = None,
    body: RequestBody = None,
    now: Optional[datetime] = None,
    max_clock_skew: Optional[Union[int, float, timedelta]] = None
) -> VerificationResult:
    """
    Verify a signed request against a single public key.

    The key identifier in the Authorization header is accepted as-is.
    """
    try:
        key_id = extract_signature_data(headers).key_id
    except VerificationError as error:
        return VerificationResult.create_error(error.code, error.message, error.details)

    verifier = RequestVerifier({key_id: public_key}, max_clock_skew)
    return verifier.verify(method, path, headers, query=query, body=body, now=now)
