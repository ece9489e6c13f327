"""
Configuration components for blueprint.
"""
from .configuration import (
    BlueprintConfiguration,
    ensure_config,
    find_default_config,
    load_config_file,
    load_configuration_from_env,
    merge_configs,
)

__all__ = [
    "BlueprintConfiguration",
    "ensure_config",
    "find_default_config",
    "load_config_file",
    "load_configuration_from_env",
    "merge_configs",
]
