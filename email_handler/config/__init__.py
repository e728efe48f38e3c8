"""Configuration management for the email handler."""

from .exceptions import AddressParseError, ConfigurationError
from .models import (
    AuthMethod,
    HandlerOptions,
    LogFormat,
    LogLevel,
    Settings,
)
from .environment import EnvironmentConfig, load_environment_config
from .loader import extract_annotation_overrides, load_config_file, load_options
from .validators import parse_sender_address, validate_settings

__all__ = [
    # Loading and validation
    "load_options",
    "load_config_file",
    "load_environment_config",
    "extract_annotation_overrides",
    "validate_settings",
    "parse_sender_address",
    # Models
    "HandlerOptions",
    "Settings",
    "EnvironmentConfig",
    # Enums
    "AuthMethod",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
    "AddressParseError",
]
