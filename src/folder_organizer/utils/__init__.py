"""Utility helpers for folder organizer."""

from .paths import (
    PathValidationError,
    path_exists,
    resolve_unique_path,
    validate_file_name,
    validate_name_fragment,
)

__all__ = [
    "PathValidationError",
    "path_exists",
    "resolve_unique_path",
    "validate_file_name",
    "validate_name_fragment",
]
