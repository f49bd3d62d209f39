"""Flat (de)serialization between entity models and store parameters.

The store only holds scalar strings. Composite fields are encoded as JSON
arrays on write and decoded back to lists on every read path; optional
scalars travel as empty strings.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from memory.errors import StoreError

COMPOSITE_FIELDS = frozenset({"tags", "contributors"})

ModelT = TypeVar("ModelT", bound=BaseModel)


def encode_list(values: list[Any] | tuple[Any, ...] | None) -> str:
    """Encode a list as a JSON array string."""
    return json.dumps([str(v) for v in values or []])


def decode_list(raw: Any) -> list[str]:
    """Decode a stored composite value; missing or empty yields an empty list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, (list, tuple)):
        return [str(v) for v in raw]
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return [part.strip() for part in raw.split(",") if part.strip()]
        if isinstance(parsed, list):
            return [str(v) for v in parsed]
        if parsed is None:
            return []
        return [str(parsed)]
    return [str(raw)]


def normalize_many(data: Any) -> list[dict[str, Any]]:
    """Normalize a backend response that may be null, one object or an array."""
    if data is None:
        return []
    if isinstance(data, Mapping):
        return [dict(data)]
    if isinstance(data, (list, tuple)):
        return [dict(item) for item in data if isinstance(item, Mapping)]
    raise StoreError(f"unexpected response shape: {type(data).__name__}")


def to_store_fields(model: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a model into store parameters (id excluded)."""
    data = model.model_dump(mode="json") if isinstance(model, BaseModel) else dict(model)
    data.pop("id", None)
    fields: dict[str, Any] = {}
    for key, value in data.items():
        if key in COMPOSITE_FIELDS:
            fields[key] = encode_list(value)
        elif value is None:
            fields[key] = ""
        else:
            fields[key] = value
    return fields


def from_store(model_cls: type[ModelT], raw: Mapping[str, Any]) -> ModelT:
    """Decode a stored record into ``model_cls``."""
    data: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in model_cls.model_fields:
            continue
        if key in COMPOSITE_FIELDS:
            data[key] = decode_list(value)
        elif value is None or value == "":
            continue
        else:
            data[key] = value
    if "id" in raw and "id" in model_cls.model_fields:
        data["id"] = str(raw["id"])
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise StoreError(
            f"malformed {model_cls.__name__} record {raw.get('id')!r}: {exc.error_count()} issue(s)"
        ) from exc
