"""
Error handling utilities for the values schema viewer.
Turns failures into logged errors plus user-friendly Streamlit messages.
"""

import streamlit as st
import logging
import traceback
from typing import Any, Callable, Optional
import json

import yaml

from .schema_walker import SchemaError

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    SCHEMA = "schema"
    FILE_SYSTEM = "file_system"
    USER_INPUT = "user_input"
    SYSTEM = "system"


ERROR_MESSAGES = {
    ErrorType.SCHEMA: {
        SchemaError: "📋 This schema cannot be rendered. Its root must be a JSON object describing the values.",
        json.JSONDecodeError: "📋 Schema file contains invalid JSON.",
        yaml.YAMLError: "📋 Schema file contains invalid YAML.",
        "default": "📋 Schema error occurred. Please check the schema file.",
    },
    ErrorType.FILE_SYSTEM: {
        FileNotFoundError: "📁 The schema file could not be found. It may have been moved or deleted.",
        PermissionError: "🔒 Permission denied while reading the schema file.",
        "default": "📁 A file system error occurred. Please try again.",
    },
    ErrorType.USER_INPUT: {
        KeyError: "⚠️ That path does not exist in the current schema.",
        "default": "⚠️ Input error. Please review your selection and try again.",
    },
    ErrorType.SYSTEM: {
        MemoryError: "💻 System is running low on memory. Please try again.",
        "default": "💻 Unexpected error occurred. Please try again.",
    },
}


class ErrorHandler:
    """Error handling for the values schema viewer."""

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False
    ) -> None:
        """
        Handle errors with user-friendly messages.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants)
            user_message: Custom user-friendly message
            show_details: Whether to show technical details
        """
        logger.error(f"Error in {context}: {str(error)}", exc_info=True)

        if not user_message:
            user_message = ErrorHandler.get_user_friendly_message(error, error_type)

        st.error(user_message)

        if show_details:
            with st.expander("🔍 Technical Details"):
                st.write(f"**Error Type:** {type(error).__name__}")
                st.write(f"**Context:** {context}")
                st.write(f"**Error Message:** {str(error)}")
                st.code("".join(traceback.format_exception(type(error), error, error.__traceback__)))

    @staticmethod
    def get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Pick the message for an error, most specific exception type first."""
        messages = ERROR_MESSAGES.get(error_type, ERROR_MESSAGES[ErrorType.SYSTEM])

        for exception_type, message in messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def with_error_handling(
        func: Callable[[], Any],
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False,
        default_return: Any = None
    ) -> Any:
        """
        Run an operation, reporting any failure instead of raising it.

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type, user_message, show_details)
            return default_return


def handle_error(error: Exception, context: str, error_type: str = ErrorType.SYSTEM) -> None:
    """Handle an error with the default presentation."""
    ErrorHandler.handle_error(error, context, error_type)
