"""Configuration management for the property alert engine."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import build_app_config, load_app_config, load_config
from .models import (
    AlertsConfig,
    AppConfig,
    BackendConfig,
    DispatchConfig,
    EmailConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MatchingConfig,
)

__all__ = [
    "load_config",
    "load_app_config",
    "build_app_config",
    "load_environment_config",
    "AppConfig",
    "MatchingConfig",
    "DispatchConfig",
    "BackendConfig",
    "AlertsConfig",
    "EmailConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
