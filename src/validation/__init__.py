"""Validation package."""

from src.validation.validator import (
    format_validation_error,
    require_text,
    validate_payload,
)

__all__ = [
    "format_validation_error",
    "require_text",
    "validate_payload",
]
