"""
Schema loader for the values schema viewer.
Handles loading JSON/YAML values schemas from the configured schemas directory.
"""

import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
import logging
import os
import re
import streamlit as st

from .config_loader import get_config_value

# Configure logging
logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = ('.json', '.yaml', '.yml')


def get_schemas_dir() -> Path:
    """Get the configured schemas directory."""
    return Path(get_config_value('schema', 'schemas_dir', 'schemas'))


def ensure_directories():
    """Ensure required directories exist."""
    get_schemas_dir().mkdir(parents=True, exist_ok=True)


def load_schema(schema_path: str) -> Optional[Dict[str, Any]]:
    """
    Load a schema from a YAML or JSON file.

    Args:
        schema_path: Path to schema file (relative to schemas directory)

    Returns:
        Schema dictionary or None if loading fails
    """
    full_path = get_schemas_dir() / schema_path

    if not full_path.exists():
        logger.error(f"Schema file not found: {full_path}")
        return None

    try:
        with open(full_path, 'r', encoding='utf-8') as f:
            if full_path.suffix.lower() in ['.yaml', '.yml']:
                schema = yaml.safe_load(f)
            elif full_path.suffix.lower() == '.json':
                schema = json.load(f)
            else:
                logger.error(f"Unsupported schema file format: {full_path.suffix}")
                return None

        if not isinstance(schema, dict):
            logger.error(f"Schema {schema_path} must contain a JSON object at the top level")
            return None

        logger.info(f"Successfully loaded schema: {schema_path}")
        return schema

    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {schema_path}: {e}")
        return None
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing error in {schema_path}: {e}")
        return None
    except (IOError, OSError, UnicodeDecodeError) as e:
        logger.error(f"Error loading schema {schema_path}: {e}")
        return None


def list_available_schemas() -> List[str]:
    """
    List all available schema files in the schemas directory.

    Returns:
        Sorted list of schema filenames
    """
    ensure_directories()

    schema_files = []

    for suffix in SCHEMA_SUFFIXES:
        schema_files.extend([f.name for f in get_schemas_dir().glob(f"*{suffix}")])

    return sorted(schema_files)


def normalized_name_for(filename: str) -> str:
    """
    Derive the document name used in ``values-<name>.yaml``.

    Args:
        filename: Schema filename, e.g. "My Chart.schema.json"

    Returns:
        Lower-case name with runs of other characters folded to "-"
    """
    stem = Path(filename).name
    for suffix in SCHEMA_SUFFIXES:
        if stem.lower().endswith(suffix):
            stem = stem[:-len(suffix)]
            break
    if stem.lower().endswith('.schema'):
        stem = stem[:-len('.schema')]
    name = re.sub(r'[^a-z0-9]+', '-', stem.lower()).strip('-')
    return name or 'schema'


@st.cache_resource(show_spinner=False)
def _load_schema_with_mtime(path: str, mtime: float) -> Optional[Dict[str, Any]]:
    """
    Load schema with mtime as cache key for hot-reload.

    The resource cache hands back the same object for the same key, so the
    view only re-walks a schema when its file changes.

    Args:
        path: Schema path relative to schemas directory
        mtime: Modification time of the file

    Returns:
        Schema dictionary or None if loading fails
    """
    return load_schema(path)


def load_active_schema(path: str) -> Optional[Dict[str, Any]]:
    """
    Load the schema selected in the UI with hot-reload using file mtime.

    Args:
        path: Schema path relative to schemas directory

    Returns:
        Schema dictionary or None if loading fails
    """
    full_path = get_schemas_dir() / path

    if not full_path.exists():
        logger.error(f"Schema file not found: {full_path}")
        return None

    mtime = os.path.getmtime(full_path)
    schema = _load_schema_with_mtime(path, mtime)

    if schema is not None:
        logger.debug(f"Active schema: {path} (mtime: {mtime})")

    return schema
