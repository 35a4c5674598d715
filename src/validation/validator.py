"""
Payload Validation

Everything that crosses the facade arrives as plain data from another
process. It is validated against the pydantic model for the endpoint
BEFORE it reaches the record service.

IMPORTANT: Validation NEVER silently fixes payloads beyond what the
models declare (whitespace stripping, computed line-item amounts).
Everything else is reported back as InvalidArgumentError.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from src.services.storage import InvalidArgumentError


ModelT = TypeVar("ModelT", bound=BaseModel)


def format_validation_error(error: ValidationError) -> str:
    """
    Flatten a pydantic error into one line.

    Example: "unitPrice: Input should be greater than or equal to 0"
    """
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def validate_payload(model_cls: type[ModelT], payload: Any) -> ModelT:
    """
    Build a model from an untrusted payload.

    Args:
        model_cls: Target model
        payload: Plain data received at the facade

    Returns:
        The validated model

    Raises:
        InvalidArgumentError: If the payload is not an object or fails
            validation
    """
    if not isinstance(payload, dict):
        raise InvalidArgumentError("Payload must be an object")
    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        raise InvalidArgumentError(format_validation_error(e))


def require_text(value: Any, name: str) -> str:
    """Get a non-empty string argument or raise InvalidArgumentError."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{name} is required")
    return value.strip()
