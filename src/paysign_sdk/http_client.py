"""
HTTP client for signed payment API calls

This module provides a requests-based client that signs every outgoing
request with the configured RSA key, retries transient failures and maps
HTTP and network errors onto ServerCommunicationError.
"""

from typing import Dict, Optional, Any, Union
from urllib.parse import urljoin, urlparse
from dataclasses import dataclass, field
import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config.settings import ClientConfig, ConfigManager
from .exceptions import ServerCommunicationError, ValidationError
from .signing.integration import SigningAuth
from .signing.types import SigningKeyMaterial, Clock
from .version import __version__

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# POST is excluded so a payment is never submitted twice by the adapter
RETRY_METHODS = frozenset(["HEAD", "GET", "PUT", "DELETE", "OPTIONS", "TRACE"])


@dataclass
class ServerConfig:
    """Configuration for the payment API connection."""
    base_url: str
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3

    def __post_init__(self):
        """Validate server configuration."""
        if not self.base_url:
            raise ValidationError("Server base_url cannot be empty")

        # Ensure base_url ends with /
        if not self.base_url.endswith('/'):
            self.base_url += '/'

        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid server URL format: {self.base_url}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")


@dataclass
class ApiResponse:
    """Successful response from the payment API."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    data: Optional[Any] = None
    text: str = ''


class PaymentApiClient:
    """
    HTTP client for a signature-protected payment API.

    Every request goes through SigningAuth, so the body is serialised by
    requests before the Digest header is computed over it.
    """

    def __init__(self, config: ServerConfig, key: SigningKeyMaterial, clock: Optional[Clock] = None):
        """
        Initialize the HTTP client.

        Args:
            config: Server configuration settings
            key: Key identifier and private key used to sign requests
            clock: Optional clock override used for the Date header
        """
        if not isinstance(key, SigningKeyMaterial):
            raise ValidationError("key must be a SigningKeyMaterial instance")

        self.config = config
        self.key = key
        self.session = self._create_session(clock)

        logger.info(f"Initialized payment API client for server: {config.base_url}")

    def _create_session(self, clock: Optional[Clock]) -> requests.Session:
        """Create HTTP session with retry logic and request signing."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.config.retry_attempts,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=RETRY_METHODS,
            backoff_factor=self.config.retry_backoff_factor,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': f'PaySign-Python-SDK/{__version__}'
        })
        session.auth = SigningAuth(self.key, clock=clock)

        return session

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None
    ) -> ApiResponse:
        """
        Make a signed HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path, relative to the configured base URL
            params: Optional query parameters
            json_body: Optional JSON-serialisable request body

        Returns:
            ApiResponse: Status, headers and parsed JSON body

        Raises:
            ServerCommunicationError: On HTTP or network errors
            SigningError: If the request cannot be signed
        """
        url = urljoin(self.config.base_url, path.lstrip('/'))

        try:
            logger.debug(f"Making {method.upper()} request to {url}")
            response = self.session.request(
                method.upper(),
                url,
                params=params,
                json=json_body,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.exceptions.Timeout:
            raise ServerCommunicationError(
                f"Request timeout after {self.config.timeout} seconds",
                error_code="TIMEOUT"
            )
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}", error_code="CONNECTION_ERROR")
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}", error_code="REQUEST_FAILED")

        if not response.ok:
            message = f'HTTP {response.status_code}: {response.reason}'
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            if isinstance(error_data, dict) and error_data.get('error'):
                message = f"HTTP {response.status_code}: {error_data['error']}"

            raise ServerCommunicationError(
                f"Server request failed: {message}",
                error_code="HTTP_ERROR",
                http_status=response.status_code,
                details={'body': response.text}
            )

        return self._build_response(response)

    @staticmethod
    def _build_response(response: requests.Response) -> ApiResponse:
        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError as e:
                content_type = response.headers.get('Content-Type', '')
                if 'json' in content_type:
                    raise ServerCommunicationError(
                        f"Invalid JSON response: {e}",
                        error_code="INVALID_RESPONSE",
                        http_status=response.status_code
                    )

        return ApiResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            data=data,
            text=response.text
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """Make a signed GET request."""
        return self.request('GET', path, params=params)

    def post(self, path: str, json_body: Optional[Any] = None) -> ApiResponse:
        """Make a signed POST request."""
        return self.request('POST', path, json_body=json_body)

    def put(self, path: str, json_body: Optional[Any] = None) -> ApiResponse:
        """Make a signed PUT request."""
        return self.request('PUT', path, json_body=json_body)

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """Make a signed DELETE request."""
        return self.request('DELETE', path, params=params)

    def close(self):
        """Close the HTTP session."""
        self.session.close()
        logger.debug("HTTP session closed")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_client(
    base_url: str,
    key_id: str,
    private_key: Any,
    timeout: float = 30.0,
    verify_ssl: bool = True,
    retry_attempts: int = 3,
    retry_backoff_factor: float = 0.3,
    clock: Optional[Clock] = None
) -> PaymentApiClient:
    """
    Create a payment API client with default configuration.

    Args:
        base_url: Payment API base URL
        key_id: Key identifier registered with the API
        private_key: RSA private key or signing handle
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
        retry_attempts: Number of retry attempts for failed requests
        retry_backoff_factor: Backoff factor between retries
        clock: Optional clock override used for the Date header

    Returns:
        PaymentApiClient: Configured HTTP client
    """
    config = ServerConfig(
        base_url=base_url,
        timeout=timeout,
        verify_ssl=verify_ssl,
        retry_attempts=retry_attempts,
        retry_backoff_factor=retry_backoff_factor
    )
    try:
        key = SigningKeyMaterial(key_id=key_id, private_key=private_key)
    except ValueError as e:
        raise ValidationError(str(e))

    return PaymentApiClient(config, key, clock=clock)


def create_client_from_config(config: Union[ConfigManager, ClientConfig]) -> PaymentApiClient:
    """
    Create a payment API client from a loaded SDK configuration.

    Args:
        config: ConfigManager or ClientConfig with server settings

    Raises:
        ConfigError: If server settings are missing or the key cannot be loaded
    """
    manager = config if isinstance(config, ConfigManager) else ConfigManager(config)
    server = manager.get_server_settings()

    server_config = ServerConfig(
        base_url=server.base_url,
        timeout=server.timeout,
        verify_ssl=server.verify_ssl,
        retry_attempts=server.retry_attempts,
        retry_backoff_factor=server.retry_backoff_factor
    )

    return PaymentApiClient(server_config, manager.to_key_material())
