"""Option loading: merges defaults, config file, environment, CLI and annotations."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from email_handler.domain.models import Event
from email_handler.logging import get_logger

from .environment import EnvironmentConfig
from .exceptions import ConfigurationError
from .models import HandlerOptions

logger = get_logger(__name__, component="config")

ANNOTATION_KEYSPACE = "sensu.io/plugins/email/config"


def option_names() -> set:
    """Return every option name accepted in files, annotations and on the CLI."""
    return {field.alias or name for name, field in HandlerOptions.model_fields.items()}


def load_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Load option values from a YAML file.

    Args:
        config_path: Path to the YAML file

    Returns:
        Mapping of option name to value (empty for an empty file)

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping
    """
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            suggestions=[f"Ensure {config_path} exists and is readable"],
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=["Check file permissions"],
        )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping of option names to values"
        )
    return data


def extract_annotation_overrides(
    event: Optional[Event], keyspace: str = ANNOTATION_KEYSPACE
) -> Dict[str, str]:
    """Collect option overrides from event annotations.

    Annotations named "<keyspace>/<option>" override the option. Entity
    annotations are applied first so check annotations win.
    """
    if event is None:
        return {}

    known = option_names()
    prefix = keyspace.rstrip("/") + "/"
    overrides: Dict[str, str] = {}

    sources = []
    if event.entity is not None:
        sources.append(event.entity.metadata.annotations)
    if event.check is not None:
        sources.append(event.check.metadata.annotations)

    for annotations in sources:
        for key, value in annotations.items():
            if not key.startswith(prefix):
                continue
            option = key[len(prefix):]
            if option in known:
                overrides[option] = value
            else:
                logger.warning(
                    f"Ignoring annotation for unknown option '{option}'",
                    extra={"event": "config.annotation.ignored", "annotation": key},
                )
    return overrides


def load_options(
    cli_values: Optional[Mapping[str, Any]] = None,
    config_path: Optional[Path] = None,
    env_config: Optional[EnvironmentConfig] = None,
    event: Optional[Event] = None,
) -> HandlerOptions:
    """
    Build HandlerOptions from every configuration source.

    Precedence, lowest to highest: model defaults, YAML file, environment,
    command line flags, event annotations.

    Args:
        cli_values: Options given on the command line (None values are ignored)
        config_path: Optional YAML file with option values
        env_config: Environment overrides
        event: Event whose annotations may override options

    Returns:
        HandlerOptions with every layer applied

    Raises:
        ConfigurationError: If a value has the wrong type or an option is unknown
    """
    merged: Dict[str, Any] = {}

    if config_path is not None:
        merged.update(load_config_file(config_path))
    if env_config is not None:
        merged.update(env_config.option_overrides)
    if cli_values:
        merged.update({k: v for k, v in cli_values.items() if v is not None})

    annotation_overrides = extract_annotation_overrides(event)
    if annotation_overrides:
        logger.debug(
            "Applying option overrides from event annotations",
            extra={
                "event": "config.annotations.applied",
                "options": sorted(annotation_overrides),
            },
        )
        merged.update(annotation_overrides)

    try:
        return HandlerOptions.model_validate(merged)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            if error["type"] == "extra_forbidden":
                errors.append(f"Unknown option: {field_path}")
            else:
                errors.append(f"Invalid value for '{field_path}': {error['msg']}")

        raise ConfigurationError(
            "Option validation failed",
            errors=errors,
            suggestions=["Run with --help to list the supported options"],
        ) from e
