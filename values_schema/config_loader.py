"""
Configuration loading utilities for the values schema viewer.

This module loads ``config.yaml``, merges it over built-in defaults and
validates each section with pydantic, falling back to defaults section by
section when values are invalid.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.yaml")

LOGGING_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}

# Global configuration cache
_config_cache: Optional[Dict[str, Any]] = None


class AppSection(BaseModel):
    name: str = "Values Schema Viewer"
    version: str = "1.0.0"
    debug: bool = False


class UISection(BaseModel):
    page_title: str = "Values Schema"
    sidebar_title: str = "Schemas"


class SchemaSection(BaseModel):
    schemas_dir: str = "schemas"
    primary_schema: Optional[str] = None


class LoggingSection(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator('level')
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in LOGGING_LEVELS:
            raise ValueError(f"unknown logging level '{value}'")
        return value.upper()


class SearchSection(BaseModel):
    max_results: int = Field(default=50, gt=0)


class AppSettings(BaseModel):
    """Validated view of the configuration file."""
    app: AppSection = Field(default_factory=AppSection)
    ui: UISection = Field(default_factory=UISection)
    schema_: SchemaSection = Field(default_factory=SchemaSection, alias='schema')
    logging: LoggingSection = Field(default_factory=LoggingSection)
    search: SearchSection = Field(default_factory=SearchSection)


SECTION_MODELS = {
    'app': AppSection,
    'ui': UISection,
    'schema': SchemaSection,
    'logging': LoggingSection,
    'search': SearchSection,
}


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """Get the built-in configuration as a plain dictionary."""
    return AppSettings().model_dump(by_alias=True)


def validate_config(config: Dict[str, Any]) -> AppSettings:
    """
    Validate configuration sections, replacing invalid ones with defaults.

    Args:
        config: Configuration dictionary (already merged over defaults)

    Returns:
        AppSettings instance
    """
    sections = {}
    for name, model in SECTION_MODELS.items():
        values = config.get(name)
        if values is None:
            continue
        if not isinstance(values, dict):
            logger.warning(f"Configuration section '{name}' must be a mapping, using defaults")
            continue
        try:
            sections[name] = model(**values)
        except ValidationError as e:
            logger.warning(f"Invalid configuration section '{name}', using defaults: {e}")
    return AppSettings(**sections)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary, defaults filled in
    """
    global _config_cache

    if config_path is None:
        if _config_cache is not None:
            return _config_cache
        config_path = CONFIG_FILE

    default_config = get_default_config()
    config = default_config

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
    else:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f)

            if user_config is None:
                logger.warning(f"Configuration file is empty: {config_path}")
            elif not isinstance(user_config, dict):
                logger.error(f"Configuration file is not a valid dictionary: {config_path}")
                logger.info("Using default configuration")
            else:
                config = deep_merge(default_config, user_config)
                logger.info(f"Successfully loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error in {config_path}: {e}")
            logger.info("Using default configuration")
        except (IOError, OSError) as e:
            logger.error(f"Failed to read configuration file {config_path}: {e}")
            logger.info("Using default configuration")

    # Replace invalid sections so callers can rely on the value types
    settings = validate_config(config)
    config = deep_merge(config, settings.model_dump(by_alias=True))

    if config_path == CONFIG_FILE:
        _config_cache = config
    return config


def reload_config() -> Dict[str, Any]:
    """
    Force reload of configuration from file.
    Useful for testing or when configuration changes.
    """
    global _config_cache
    _config_cache = None
    return load_config()


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        section: Configuration section (e.g., 'schema', 'ui')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    config = load_config()
    values = config.get(section, {})
    if not isinstance(values, dict):
        return default
    return values.get(key, default)


def get_settings() -> AppSettings:
    """Get validated settings for the current configuration."""
    return validate_config(load_config())
