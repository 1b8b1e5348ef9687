"""Request validation capability.

Routes never pass a raw body to a service: the body is parsed and validated
by a ``Validator`` first, and failures become an ``invalid`` error carrying
field-level details. Services only check business invariants.
"""

import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError

from leasehold.core.errors import AppError

ModelT = TypeVar("ModelT", bound=BaseModel)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}
_QUOTED = re.compile(r"'([^']*)'")


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str
    message: str


class Validator(Protocol):
    """Protocol for request payload validation."""

    def validate(self, schema: type[BaseModel], payload: Any) -> list[FieldError]:
        """Return the field errors for a payload (empty when valid)."""
        ...

    def parse(self, schema: type[ModelT], payload: Any) -> ModelT:
        """Return the typed model or raise an ``invalid`` AppError."""
        ...


class PydanticValidator:
    """Validator backed by the pydantic models used as request schemas."""

    def validate(self, schema: type[BaseModel], payload: Any) -> list[FieldError]:
        try:
            schema.model_validate(payload)
        except ValidationError as exc:
            return format_validation_errors(exc.errors())
        return []

    def parse(self, schema: type[ModelT], payload: Any) -> ModelT:
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            raise validation_failed(format_validation_errors(exc.errors())) from exc


def validation_failed(errors: Sequence[FieldError]) -> AppError:
    return AppError.invalid(
        "Validation failed",
        details=[error.model_dump() for error in errors],
    )


def _field_name(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _message_for(error: dict[str, Any]) -> str:
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind == "missing":
        return "This field is required"
    if kind == "value_error" and "email" in str(error.get("msg", "")).lower():
        return "Invalid email format"
    if kind == "string_too_short":
        return f"Value is too short, minimum is {ctx.get('min_length')}"
    if kind == "string_too_long":
        return f"Value is too long, maximum is {ctx.get('max_length')}"
    if kind == "greater_than_equal":
        return f"Value must be greater than or equal to {ctx.get('ge')}"
    if kind == "greater_than":
        return f"Value must be greater than {ctx.get('gt')}"
    if kind == "less_than_equal":
        return f"Value must be less than or equal to {ctx.get('le')}"
    if kind in ("literal_error", "enum"):
        options = _QUOTED.findall(str(ctx.get("expected", "")))
        return "Value must be one of: " + " ".join(options)
    if kind in ("decimal_max_digits", "decimal_max_places", "decimal_whole_digits"):
        return "Value has too many digits"
    if kind == "extra_forbidden":
        return "Unknown field"
    if kind == "json_invalid":
        return "Invalid JSON"
    if kind.endswith("_parsing") or kind.endswith("_type"):
        return "Invalid value"
    return f"Validation failed on {kind or 'value'}"


def format_validation_errors(errors: Sequence[dict[str, Any]]) -> list[FieldError]:
    """Convert pydantic error dicts into readable field errors."""
    return [
        FieldError(field=_field_name(error.get("loc", ())), message=_message_for(error))
        for error in errors
    ]


def get_validator(request: Request) -> Validator:
    """Validator configured on the application."""
    return request.app.state.validator


def validated_body(
    schema: type[ModelT],
) -> Callable[..., Awaitable[ModelT]]:
    """
    Factory for a dependency that parses the JSON body and validates it
    against ``schema`` with the application's validator.
    """

    async def body_parser(
        request: Request,
        validator: Validator = Depends(get_validator),
    ) -> ModelT:
        try:
            payload = await request.json()
        except ValueError as exc:
            raise AppError.invalid("Invalid request body", exc) from exc
        return validator.parse(schema, payload)

    return body_parser


def body_openapi(schema: type[BaseModel]) -> dict[str, Any]:
    """OpenAPI request body for routes that parse their body via ``validated_body``."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema.model_json_schema()}},
        }
    }
