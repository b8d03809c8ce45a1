"""
Main Streamlit application for the values schema viewer.
Renders configuration schemas as annotated example values files with
path search.
"""

import streamlit as st
import logging

from values_schema.config_loader import get_config_value, get_settings
from values_schema.error_handler import ErrorHandler, ErrorType
from values_schema.schema_loader import (
    list_available_schemas,
    load_active_schema,
    normalized_name_for,
)
from values_schema.schema_view import SchemaView


def get_logging_level(level_str):
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


# Configure logging dynamically from config
log_level_str = get_config_value('logging', 'level', 'INFO')
logging.basicConfig(
    level=get_logging_level(log_level_str),
    format=get_config_value('logging', 'format', '%(levelname)s - %(name)s - %(message)s'),
)
logger = logging.getLogger(__name__)
logger.info(f"Logging configured to level: {log_level_str}")

settings = get_settings()

st.set_page_config(
    page_title=settings.ui.page_title,
    page_icon="📋",
    layout="wide",
    initial_sidebar_state="expanded"
)


def render_sidebar():
    """Let the user pick a schema file; returns the chosen filename or None."""
    st.sidebar.title(settings.ui.sidebar_title)
    schemas = list_available_schemas()
    if not schemas:
        st.sidebar.info(f"No schemas found in '{settings.schema_.schemas_dir}'")
        return None

    primary = settings.schema_.primary_schema
    index = schemas.index(primary) if primary in schemas else 0
    selected = st.sidebar.selectbox("Schema", schemas, index=index, key="selected_schema")
    st.sidebar.caption(f"{settings.app.name} v{settings.app.version}")
    return selected


def main():
    """Main application entry point."""
    st.title(settings.ui.page_title)

    selected = render_sidebar()
    if not selected:
        st.info("Add a JSON or YAML schema to the schemas directory to get started.")
        return

    schema = ErrorHandler.with_error_handling(
        lambda: load_active_schema(selected),
        "schema loading",
        ErrorType.FILE_SYSTEM,
    )
    if schema is None:
        st.error(f"📋 Schema '{selected}' could not be loaded. Check the logs for details.")
        return

    view = SchemaView(max_results=settings.search.max_results)
    view.render(schema, normalized_name_for(selected))


if __name__ == "__main__":
    main()
