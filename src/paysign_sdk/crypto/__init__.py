"""
Cryptographic operations for PaySign Python SDK
"""

from .keys import (
    load_private_key,
    load_private_key_file,
    load_public_key,
    load_public_key_file,
    format_public_key,
    sign_message,
    verify_signature,
    check_platform_compatibility,
    MIN_RSA_KEY_SIZE,
)

__all__ = [
    'load_private_key',
    'load_private_key_file',
    'load_public_key',
    'load_public_key_file',
    'format_public_key',
    'sign_message',
    'verify_signature',
    'check_platform_compatibility',
    'MIN_RSA_KEY_SIZE',
]
