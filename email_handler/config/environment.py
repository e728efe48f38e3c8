"""Environment variable binding for handler options."""

import os
from typing import Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .models import LogFormat, LogLevel

# environment variable -> option name
OPTION_ENV_VARS = {
    "SMTP_HOST": "smtpHost",
    "SMTP_USERNAME": "smtpUsername",
    "SMTP_PASSWORD": "smtpPassword",
    "SMTP_PORT": "smtpPort",
}


class EnvironmentConfig:
    """Values read from the process environment."""

    def __init__(
        self,
        option_overrides: Optional[Dict[str, str]] = None,
        log_level: Optional[str] = None,
        log_format: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.option_overrides = option_overrides or {}
        self.log_level = log_level
        self.log_format = log_format
        self.environment = environment or "local"


def load_environment_config(environ: Optional[Mapping[str, str]] = None) -> EnvironmentConfig:
    """
    Load option overrides and logging settings from the environment.

    Recognised variables:
    - SMTP_HOST, SMTP_PORT: connection target
    - SMTP_USERNAME, SMTP_PASSWORD: credentials, so they stay off the command line
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
    - LOG_FORMAT: json or key-value
    - ENVIRONMENT: label attached to every log record

    Empty variables are treated as unset.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        EnvironmentConfig

    Raises:
        ConfigurationError: If LOG_LEVEL or LOG_FORMAT is not a known value
    """
    env = os.environ if environ is None else environ
    errors = []

    overrides = {}
    for variable, option in OPTION_ENV_VARS.items():
        value = env.get(variable)
        if value:
            overrides[option] = value

    log_level = env.get("LOG_LEVEL") or None
    if log_level:
        valid_levels = [level.value for level in LogLevel]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )
        else:
            log_level = log_level.upper()

    log_format = env.get("LOG_FORMAT") or None
    if log_format:
        valid_formats = [fmt.value for fmt in LogFormat]
        if log_format not in valid_formats:
            errors.append(
                f"Invalid LOG_FORMAT: '{log_format}'. Must be one of: {', '.join(valid_formats)}"
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=["Unset the variable or fix its value"],
        )

    return EnvironmentConfig(
        option_overrides=overrides,
        log_level=log_level,
        log_format=log_format,
        environment=env.get("ENVIRONMENT"),
    )
