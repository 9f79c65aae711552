"""
Type definitions for request signature verification

This module provides the result and error types for checking signed
requests from the server's point of view.
"""

from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


class VerificationStatus(str, Enum):
    """Verification result status"""
    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"


# Checks reported for every verification
VERIFICATION_CHECKS = (
    'format_valid',
    'algorithm_valid',
    'key_known',
    'content_digest_valid',
    'timestamp_valid',
    'cryptographic_valid',
)


@dataclass
class ExtractedSignatureData:
    """Signature data extracted from request headers"""
    key_id: str
    algorithm: str
    signed_headers: str
    signature: bytes
    date: str
    digest: str

    def __post_init__(self):
        """Validate extracted data"""
        if not self.key_id:
            raise ValueError("Key ID cannot be empty")
        if not self.signature:
            raise ValueError("Signature cannot be empty")


@dataclass
class VerificationResult:
    """Verification result"""
    status: VerificationStatus
    signature_valid: bool
    checks: Dict[str, bool]
    key_id: Optional[str] = None
    string_to_sign: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    error_codes: List[str] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def create_error(
        cls,
        error_code: str,
        error_message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> 'VerificationResult':
        """Create error result"""
        return cls(
            status=VerificationStatus.ERROR,
            signature_valid=False,
            checks={name: False for name in VERIFICATION_CHECKS},
            key_id=(details or {}).get('key_id'),
            errors=[error_message],
            error_codes=[error_code],
            error={
                'code': error_code,
                'message': error_message,
                'details': details or {}
            }
        )


class VerificationError(Exception):
    """Error class for verification operations"""

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
        return f"VerificationError(message='{self.message}', code='{self.code}', details={self.details})"


class VerificationErrorCodes:
    """Standard error codes for verification operations"""

    # Signature format errors
    MISSING_HEADER = "MISSING_HEADER"
    INVALID_AUTHORIZATION_FORMAT = "INVALID_AUTHORIZATION_FORMAT"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    UNEXPECTED_SIGNED_HEADERS = "UNEXPECTED_SIGNED_HEADERS"

    # Key management errors
    PUBLIC_KEY_NOT_FOUND = "PUBLIC_KEY_NOT_FOUND"
    INVALID_PUBLIC_KEY = "INVALID_PUBLIC_KEY"

    # Validation errors
    TIMESTAMP_VALIDATION_FAILED = "TIMESTAMP_VALIDATION_FAILED"
    CONTENT_DIGEST_VALIDATION_FAILED = "CONTENT_DIGEST_VALIDATION_FAILED"
    SIGNATURE_VERIFICATION_FAILED = "SIGNATURE_VERIFICATION_FAILED"

    # General errors
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
