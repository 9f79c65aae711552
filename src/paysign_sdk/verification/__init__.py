"""
PaySign Python SDK - Signature Verification Module

Server-side checking of RSA-SHA256 signed requests, used to confirm that
the Authorization, Digest and Date headers produced by the signer verify
against the matching public key.
"""

from .types import (
    VerificationResult,
    VerificationStatus,
    VerificationError,
    VerificationErrorCodes,
    ExtractedSignatureData,
    VERIFICATION_CHECKS,
)

from .verifier import (
    RequestVerifier,
    create_verifier,
    verify_request,
)

from .utils import (
    extract_signature_data,
    find_header_case_insensitive,
    verify_body_digest,
    check_date_freshness,
)

__all__ = [
    # Core verification
    'RequestVerifier',
    'create_verifier',
    'verify_request',
    # Types
    'VerificationResult',
    'VerificationStatus',
    'VerificationError',
    'VerificationErrorCodes',
    'ExtractedSignatureData',
    'VERIFICATION_CHECKS',
    # Utilities
    'extract_signature_data',
    'find_header_case_insensitive',
    'verify_body_digest',
    'check_date_freshness',
]
