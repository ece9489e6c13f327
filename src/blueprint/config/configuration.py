"""
Configuration management for the blueprint engine with validation.
"""
import logging
import os
import json
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..error.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "BLUEPRINT_"

COLLISION_POLICIES = {"error", "overwrite"}


class BlueprintConfiguration(BaseModel):
    """Configuration for template loading, composition and rendering."""

    model_config = ConfigDict(validate_assignment=True)

    # General settings
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    json_logging: bool = False

    # Template locations
    template_dir: Optional[Path] = Field(default=None, description="Root of the template tree used by the engine")
    local_template_dir: Optional[Path] = Field(default=None, description="User templates, searched before the bundled ones")

    # Engine behaviour
    definition_file: str = Field(default="template.yaml", description="Name of the template definition file")
    template_marker: str = Field(default=".tmpl", description="Suffix of files rendered through the template language")
    collision_policy: str = Field(default="error", description="What to do when two files render to the same destination")
    deep_include_toggles: bool = Field(default=False, description="Apply include selection to nested includes too")
    require_project_name: bool = Field(default=True, description="Check the project_name role after composition")
    strict_undefined: bool = Field(default=False, description="Fail when a template references a missing variable")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        value_upper = value.upper()
        if value_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of: {valid_levels}")
        return value_upper

    @field_validator("collision_policy")
    @classmethod
    def validate_collision_policy(cls, value: str) -> str:
        """Validate destination collision policy."""
        if value.lower() not in COLLISION_POLICIES:
            raise ValueError(f"Invalid collision policy '{value}'. Must be one of: {COLLISION_POLICIES}")
        return value.lower()

    @field_validator("template_marker")
    @classmethod
    def validate_template_marker(cls, value: str) -> str:
        """The marker must be a non-empty suffix."""
        if not value or "/" in value:
            raise ValueError(f"Invalid template marker '{value}'")
        return value

    @field_validator("definition_file")
    @classmethod
    def validate_definition_file(cls, value: str) -> str:
        """The definition file is a bare file name."""
        if not value or "/" in value or "\\" in value:
            raise ValueError(f"Invalid definition file name '{value}'")
        return value

    @field_validator("template_dir", "local_template_dir", "log_file", mode="before")
    @classmethod
    def convert_single_path(cls, value: Any) -> Optional[Path]:
        """Convert single path strings to Path objects."""
        if value is None or value == "":
            return None
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        raise ValueError(f"Invalid path value: {value}")


def ensure_config(config: Optional[Dict[str, Any]] = None) -> BlueprintConfiguration:
    """
    Ensure a valid blueprint configuration.

    Precedence, lowest first: defaults, the default configuration file,
    ``BLUEPRINT_*`` environment variables, then the explicit ``config``.

    Args:
        config: Explicit configuration values or an existing configuration

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the merged values are invalid
    """
    if isinstance(config, BlueprintConfiguration):
        return config

    merged = find_default_config() or {}
    merged = merge_configs(merged, load_configuration_from_env())
    merged = merge_configs(merged, config or {})

    try:
        return BlueprintConfiguration(**merged)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {str(e)}") from e


def find_default_config() -> Optional[Dict[str, Any]]:
    """
    Find and load the default configuration file from standard locations.

    Returns:
        Configuration dictionary or None if no config file found
    """
    search_paths = [
        Path.cwd() / "blueprint.yaml",
        Path.cwd() / "blueprint.yml",
        Path.cwd() / "blueprint.json",
        Path.home() / ".blueprint" / "config.yaml",
        Path.home() / ".blueprint" / "config.json",
    ]

    for path in search_paths:
        if path.is_file():
            return load_config_file(str(path))

    logger.debug("No configuration file found, using defaults")
    return None


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file (YAML or JSON).

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If the file is not found or cannot be parsed
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    try:
        content = path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {str(e)}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            loaded_config = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            loaded_config = json.loads(content) or {}
        else:
            raise ConfigurationError(f"Unsupported config file format: {file_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format in {file_path}: {str(e)}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format in {file_path}: {str(e)}") from e

    if not isinstance(loaded_config, dict):
        raise ConfigurationError(f"Configuration in {file_path} must be a mapping")

    logger.debug(f"Loaded configuration from {file_path}")
    return loaded_config


def load_configuration_from_env(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """
    Collect configuration values from environment variables.

    ``BLUEPRINT_TEMPLATE_DIR=/srv/templates`` becomes
    ``{"template_dir": "/srv/templates"}``. Only known fields are picked up.

    Args:
        prefix: Environment variable prefix

    Returns:
        Dictionary with configuration
    """
    values: Dict[str, Any] = {}
    for field_name in BlueprintConfiguration.model_fields:
        env_key = f"{prefix}{field_name.upper()}"
        if env_key in os.environ:
            values[field_name] = os.environ[env_key]
    return values


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result
