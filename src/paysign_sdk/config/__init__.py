"""
Configuration management for PaySign Python SDK

This module loads signing, server and logging settings from JSON or the
environment and configures SDK logging.
"""

from .settings import (
    ClientConfig,
    ConfigManager,
    SigningSettings,
    ServerSettings,
    LoggingConfig,
    ConfigError,
    configure_logging,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)

__all__ = [
    'ClientConfig',
    'ConfigManager',
    'SigningSettings',
    'ServerSettings',
    'LoggingConfig',
    'ConfigError',
    'configure_logging',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
]
