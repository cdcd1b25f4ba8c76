"""
Payload validation.

Each ``validate_*`` function checks a raw JSON payload against one schema and
returns a ``ValidationResult``: either ``ok`` with the normalized model, or a
failure carrying the message of the first violated constraint. Nothing here
raises; callers decide whether a failure becomes an exception.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from api.src.models.user import OrderCreate, UserCreate, UserUpdate

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ValidationResult(Generic[ModelT]):
    """Tagged outcome of a schema check."""

    ok: bool
    value: Optional[ModelT] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: ModelT) -> "ValidationResult[ModelT]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, message: str) -> "ValidationResult[ModelT]":
        return cls(ok=False, message=message)


def first_error_message(exc: PydanticValidationError) -> str:
    """
    Render the first error of a pydantic ValidationError.

    Args:
        exc: Error raised by model validation

    Returns:
        ``"<dotted.location>: <message>"``, or just the message when the
        error is not tied to a field
    """
    errors = exc.errors()
    if not errors:
        return "Invalid payload"
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]


def validate_payload(schema: Type[ModelT], payload: Any) -> ValidationResult[ModelT]:
    if not isinstance(payload, dict):
        return ValidationResult.failure("Request body must be a JSON object")
    try:
        return ValidationResult.success(schema.model_validate(payload))
    except PydanticValidationError as e:
        return ValidationResult.failure(first_error_message(e))


def validate_user(payload: Any) -> ValidationResult[UserCreate]:
    """Check a full user record."""
    return validate_payload(UserCreate, payload)


def validate_user_update(payload: Any) -> ValidationResult[UserUpdate]:
    """Check a partial user update; every field optional."""
    return validate_payload(UserUpdate, payload)


def validate_order(payload: Any) -> ValidationResult[OrderCreate]:
    """Check an order line-item."""
    return validate_payload(OrderCreate, payload)
