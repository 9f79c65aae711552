"""
Exception classes for PaySign Python SDK
"""

from typing import Optional, Dict, Any


class PaySignSDKError(Exception):
    """Base exception for all PaySign SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(PaySignSDKError):
    """Exception raised for validation failures"""
    pass


class KeyLoadError(PaySignSDKError):
    """Exception raised when RSA key material cannot be loaded"""
    pass


class UnsupportedPlatformError(PaySignSDKError):
    """Exception raised when platform features are not supported"""
    pass


class ServerCommunicationError(PaySignSDKError):
    """Exception raised for server communication errors"""

    def __init__(self, message: str, error_code: str = "SERVER_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status


class CryptoOperationError(PaySignSDKError):
    """Exception raised when an RSA sign or verify primitive fails"""
    pass
