"""Model construction with domain error conversion."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from memory.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)
EnumT = TypeVar("EnumT", bound=Enum)


def validate_model(model_cls: type[ModelT], data: Mapping[str, Any], context: str = "") -> ModelT:
    """Build ``model_cls`` from ``data`` or raise a field-level ValidationError."""
    try:
        return model_cls.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, context=context or model_cls.__name__) from exc


def parse_enum(enum_cls: type[EnumT], value: Any, field: str) -> EnumT:
    """Parse a closed-set value, naming the allowed choices on failure."""
    try:
        return enum_cls(value)
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"invalid {field} {value!r}; expected one of: {choices}", fields=[field]) from exc


def parse_optional_enum(enum_cls: type[EnumT], value: Any, field: str) -> EnumT | None:
    return None if value is None else parse_enum(enum_cls, value, field)
