"""
PaySign Python SDK
RSA-SHA256 request signing for signature-protected payment APIs
"""

from .version import __version__
from .crypto.keys import (
    load_private_key,
    load_private_key_file,
    load_public_key,
    load_public_key_file,
    format_public_key,
    check_platform_compatibility,
    sign_message,
    verify_signature,
)
from .exceptions import (
    PaySignSDKError,
    ValidationError,
    KeyLoadError,
    UnsupportedPlatformError,
    ServerCommunicationError,
    CryptoOperationError,
)
from .signing import (
    RequestSigner,
    SigningRequest,
    SigningKeyMaterial,
    SignatureHeaders,
    SigningError,
    SigningErrorCodes,
    InvalidBodyTypeError,
    SigningPrimitiveError,
    SigningAuth,
    SigningSession,
    create_signer,
    sign_request,
    create_signing_config,
    create_key_material,
    create_signing_session,
    enable_request_signing,
    disable_request_signing,
)
from .verification import (
    RequestVerifier,
    VerificationResult,
    VerificationStatus,
    create_verifier,
    verify_request,
)
from .config import (
    ClientConfig,
    ConfigManager,
    ConfigError,
    LoggingConfig,
    configure_logging,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)
from .http_client import (
    PaymentApiClient,
    ServerConfig,
    ApiResponse,
    create_client,
    create_client_from_config,
)


def initialize_sdk(strict: bool = False):
    """
    Initialize the PaySign SDK and check platform compatibility.

    Args:
        strict: Raise UnsupportedPlatformError instead of reporting incompatibility

    Returns:
        dict: Compatibility information with 'compatible' (bool) and 'warnings' (list)
    """
    warnings = []
    compatible = True

    try:
        compat_info = check_platform_compatibility()
        if not compat_info['sha256_supported']:
            warnings.append('SHA-256 not supported by cryptography backend - signing will fail')
            compatible = False

        if not compat_info['sha512_supported']:
            warnings.append('SHA-512 not supported by cryptography backend - body digests will fail')
            compatible = False

    except Exception as e:
        warnings.append(f'Platform compatibility check failed: {e}')
        compatible = False

    if strict and not compatible:
        raise UnsupportedPlatformError(
            'Platform not compatible with PaySign SDK',
            'PLATFORM_INCOMPATIBLE',
            {'warnings': warnings}
        )

    return {
        'compatible': compatible,
        'warnings': warnings,
        'version': __version__
    }


def is_compatible():
    """
    Quick synchronous compatibility check.

    Returns:
        bool: True if platform supports request signing
    """
    return initialize_sdk()['compatible']


# Public API exports
__all__ = [
    '__version__',
    # Keys
    'load_private_key',
    'load_private_key_file',
    'load_public_key',
    'load_public_key_file',
    'format_public_key',
    'check_platform_compatibility',
    'sign_message',
    'verify_signature',
    # Exceptions
    'PaySignSDKError',
    'ValidationError',
    'KeyLoadError',
    'UnsupportedPlatformError',
    'ServerCommunicationError',
    'CryptoOperationError',
    # Signing
    'RequestSigner',
    'SigningRequest',
    'SigningKeyMaterial',
    'SignatureHeaders',
    'SigningError',
    'SigningErrorCodes',
    'InvalidBodyTypeError',
    'SigningPrimitiveError',
    'SigningAuth',
    'SigningSession',
    'create_signer',
    'sign_request',
    'create_signing_config',
    'create_key_material',
    'create_signing_session',
    'enable_request_signing',
    'disable_request_signing',
    # Verification
    'RequestVerifier',
    'VerificationResult',
    'VerificationStatus',
    'create_verifier',
    'verify_request',
    # Configuration
    'ClientConfig',
    'ConfigManager',
    'ConfigError',
    'LoggingConfig',
    'configure_logging',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    # HTTP client
    'PaymentApiClient',
    'ServerConfig',
    'ApiResponse',
    'create_client',
    'create_client_from_config',
    # SDK
    'initialize_sdk',
    'is_compatible',
]
