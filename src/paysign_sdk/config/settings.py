"""
Configuration management for the PaySign Python SDK

Loads the signing key reference, API server settings and logging settings
from a JSON document, a JSON file or environment variables.
"""

import json
import logging
import os
from typing import Dict, Optional, Any, Union, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ..crypto.keys import load_private_key, load_private_key_file
from ..exceptions import KeyLoadError
from ..signing.types import SigningKeyMaterial

DEFAULT_LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

ENV_PREFIX = 'PAYSIGN_'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


class ConfigError(Exception):
    """Configuration loading and validation error"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


@dataclass
class SigningSettings:
    """Where to find the signing key"""
    key_id: str
    private_key_path: Optional[str] = None
    private_key_pem: Optional[str] = None
    private_key_password: Optional[str] = None


@dataclass
class ServerSettings:
    """API server connection settings"""
    base_url: str
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = 'INFO'
    format: str = DEFAULT_LOG_FORMAT


@dataclass
class ClientConfig:
    """Complete SDK configuration"""
    signing: SigningSettings
    server: Optional[ServerSettings] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigManager:
    """Configuration manager for the Python SDK"""

    def __init__(self, config: ClientConfig):
        self.config = config
        self._validate()

    @classmethod
    def from_json(cls, json_string: str) -> 'ConfigManager':
        """Load configuration from JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigManager':
        """Load configuration from an already parsed dictionary"""
        try:
            config = cls._parse_config_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT")

        return cls(config)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'ConfigManager':
        """Load configuration from file"""
        try:
            json_string = Path(file_path).read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR")

        return cls.from_json(json_string)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ConfigManager':
        """
        Load configuration from PAYSIGN_* environment variables

        PAYSIGN_KEY_ID is required, together with either
        PAYSIGN_PRIVATE_KEY_PATH or PAYSIGN_PRIVATE_KEY (PEM text).
        PAYSIGN_BASE_URL enables the server section.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value else None

        if get('KEY_ID') is None:
            raise ConfigError(f"{ENV_PREFIX}KEY_ID is not set", "MISSING_KEY_ID")

        data: Dict[str, Any] = {
            'signing': {
                'key_id': get('KEY_ID'),
                'private_key_path': get('PRIVATE_KEY_PATH'),
                'private_key_pem': get('PRIVATE_KEY'),
                'private_key_password': get('PRIVATE_KEY_PASSWORD'),
            }
        }

        if get('BASE_URL') is not None:
            server: Dict[str, Any] = {'base_url': get('BASE_URL')}
            try:
                if get('TIMEOUT') is not None:
                    server['timeout'] = float(get('TIMEOUT'))
                if get('RETRY_ATTEMPTS') is not None:
                    server['retry_attempts'] = int(get('RETRY_ATTEMPTS'))
            except ValueError as e:
                raise ConfigError(f"Invalid numeric environment value: {e}", "INVALID_FORMAT")
            if get('VERIFY_SSL') is not None:
                server['verify_ssl'] = _parse_bool(get('VERIFY_SSL'), ENV_PREFIX + 'VERIFY_SSL')
            data['server'] = server

        if get('LOG_LEVEL') is not None:
            data['logging'] = {'level': get('LOG_LEVEL')}

        return cls.from_dict(data)

    def to_key_material(self) -> SigningKeyMaterial:
        """
        Load the configured private key and pair it with the key ID

        Raises:
            ConfigError: If the key cannot be loaded
        """
        signing = self.config.signing

        try:
            if signing.private_key_pem:
                private_key = load_private_key(signing.private_key_pem, signing.private_key_password)
            else:
                private_key = load_private_key_file(signing.private_key_path, signing.private_key_password)
        except KeyLoadError as e:
            raise ConfigError(f"Failed to load signing key: {e}", "KEY_LOAD_ERROR")

        return SigningKeyMaterial(key_id=signing.key_id, private_key=private_key)

    def get_config(self) -> ClientConfig:
        """Get the full configuration"""
        return self.config

    def get_server_settings(self) -> ServerSettings:
        """Get server settings, which must be configured"""
        if self.config.server is None:
            raise ConfigError("Server settings are not configured", "MISSING_SERVER")
        return self.config.server

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration"""
        return self.config.logging

    def _validate(self) -> None:
        """Validate the configuration"""
        self._validate_types()

        signing = self.config.signing

        if not signing.key_id:
            raise ConfigError("Signing key_id cannot be empty", "MISSING_KEY_ID")

        if not signing.private_key_path and not signing.private_key_pem:
            raise ConfigError(
                "Either private_key_path or private_key_pem must be configured",
                "MISSING_PRIVATE_KEY"
            )

        server = self.config.server
        if server is not None:
            if not server.base_url:
                raise ConfigError("Server base_url cannot be empty", "INVALID_SERVER_CONFIG")
            if server.timeout <= 0:
                raise ConfigError("Server timeout must be positive", "INVALID_SERVER_CONFIG")
            if server.retry_attempts < 0:
                raise ConfigError("Retry attempts must be non-negative", "INVALID_SERVER_CONFIG")

        if not isinstance(logging.getLevelName(self.config.logging.level.upper()), int):
            raise ConfigError(f"Unknown log level: {self.config.logging.level}", "INVALID_LOG_LEVEL")

    def _validate_types(self) -> None:
        """Reject values that parsed from JSON but have the wrong type"""
        signing = self.config.signing
        _check_type(signing.key_id, (str,), 'signing.key_id')
        _check_type(signing.private_key_path, (str, type(None)), 'signing.private_key_path')
        _check_type(signing.private_key_pem, (str, type(None)), 'signing.private_key_pem')
        _check_type(signing.private_key_password, (str, type(None)), 'signing.private_key_password')

        server = self.config.server
        if server is not None:
            _check_type(server.base_url, (str,), 'server.base_url')
            _check_type(server.timeout, (int, float), 'server.timeout')
            _check_type(server.verify_ssl, (bool,), 'server.verify_ssl')
            _check_type(server.retry_attempts, (int,), 'server.retry_attempts')
            _check_type(server.retry_backoff_factor, (int, float), 'server.retry_backoff_factor')

        _check_type(self.config.logging.level, (str,), 'logging.level')
        _check_type(self.config.logging.format, (str,), 'logging.format')

    @staticmethod
    def _parse_config_dict(data: Dict[str, Any]) -> ClientConfig:
        """Parse configuration dictionary into structured objects"""
        signing = SigningSettings(**data['signing'])

        server = None
        if data.get('server') is not None:
            server = ServerSettings(**data['server'])

        logging_config = LoggingConfig(**data.get('logging', {}))

        return ClientConfig(signing=signing, server=server, logging=logging_config)


def _check_type(value: Any, types: tuple, name: str) -> None:
    # bool is an int subclass but never a valid number here
    if isinstance(value, types) and not (isinstance(value, bool) and bool not in types):
        return
    raise ConfigError(
        f"{name} has invalid type {type(value).__name__}",
        "INVALID_FORMAT"
    )


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}", "INVALID_FORMAT")


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Attach a stream handler to the SDK's root logger.

    Calling this more than once replaces the handler instead of adding another.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger('paysign_sdk')
    logger.setLevel(config.level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, '_paysign_handler', False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))
    handler._paysign_handler = True
    logger.addHandler(handler)

    return logger


def load_config_from_json(json_string: str) -> ConfigManager:
    """Load configuration from JSON string"""
    return ConfigManager.from_json(json_string)


def load_config_from_file(file_path: Union[str, Path]) -> ConfigManager:
    """Load configuration from file"""
    return ConfigManager.from_file(file_path)


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> ConfigManager:
    """Load configuration from environment variables"""
    return ConfigManager.from_env(environ)
