"""Utility modules for releasehook."""

from .logging import get_logger, setup_logging
from .sanitize import (
    extract_safe_fields,
    is_valid_json,
    sanitize_release_tag,
    sanitize_repository_name,
    sanitize_string,
    truncate_for_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "extract_safe_fields",
    "is_valid_json",
    "sanitize_release_tag",
    "sanitize_repository_name",
    "sanitize_string",
    "truncate_for_logging",
]
