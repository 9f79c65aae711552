"""
PaySign Python SDK - Request Signing Module

RSA-SHA256 HTTP request signing with a SHA-512 body digest. This module
produces the Authorization, Digest and Date headers expected by
signature-protected payment API endpoints.
"""

from .types import (
    SigningRequest,
    SigningKeyMaterial,
    SignatureHeaders,
    PrivateKeyHandle,
    SigningError,
    SigningErrorCodes,
    InvalidBodyTypeError,
    SigningPrimitiveError,
    SignatureAlgorithm,
    AUTHORIZATION_HEADER,
    DIGEST_HEADER,
    DATE_HEADER,
    SIGNED_HEADERS,
    EMPTY_BODY_SENTINEL,
)

from .signer import (
    RequestSigner,
    create_signer,
    sign_request,
)

from .signing_config import (
    SigningConfigBuilder,
    create_signing_config,
    create_key_material,
)

from .string_to_sign import (
    build_string_to_sign,
    build_authorization_header,
    parse_authorization_header,
    validate_string_to_sign,
)

from .utils import (
    utc_now,
    select_digest_input,
    calculate_body_digest,
    format_signature_date,
    parse_signature_date,
    build_request_target,
)

from .integration import (
    SigningAuth,
    SigningSession,
    create_signing_session,
    enable_request_signing,
    disable_request_signing,
    sign_prepared_request,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'RequestSigner',
    'create_signer',
    'sign_request',
    # Types
    'SigningRequest',
    'SigningKeyMaterial',
    'SignatureHeaders',
    'PrivateKeyHandle',
    'SigningError',
    'SigningErrorCodes',
    'InvalidBodyTypeError',
    'SigningPrimitiveError',
    'SignatureAlgorithm',
    'AUTHORIZATION_HEADER',
    'DIGEST_HEADER',
    'DATE_HEADER',
    'SIGNED_HEADERS',
    'EMPTY_BODY_SENTINEL',
    # Configuration
    'SigningConfigBuilder',
    'create_signing_config',
    'create_key_material',
    # String-to-sign
    'build_string_to_sign',
    'build_authorization_header',
    'parse_authorization_header',
    'validate_string_to_sign',
    # Utilities
    'utc_now',
    'select_digest_input',
    'calculate_body_digest',
    'format_signature_date',
    'parse_signature_date',
    'build_request_target',
    # HTTP Integration
    'SigningAuth',
    'SigningSession',
    'create_signing_session',
    'enable_request_signing',
    'disable_request_signing',
    'sign_prepared_request',
]
