"""Error hierarchy for memory operations.

Every error carries a stable ``prefix`` so callers (and scripts wrapping the
CLI) can tell bad input from missing records from backend failures.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as PydanticValidationError


class HypermemError(Exception):
    """Base class for all handled errors."""

    prefix = "error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.prefix, "message": str(self)}


class ValidationError(HypermemError):
    """Input violates the schema or a record invariant."""

    prefix = "validation error"

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = list(fields)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, context: str = "") -> ValidationError:
        """Collapse a pydantic error into one field-level message."""
        fields: list[str] = []
        issues: list[str] = []
        for issue in exc.errors():
            loc = ".".join(str(part) for part in issue.get("loc", ()))
            if loc and loc not in fields:
                fields.append(loc)
            msg = str(issue.get("msg", "invalid value"))
            issues.append(f"{loc}: {msg}" if loc else msg)
        head = f"invalid {context}: " if context else ""
        return cls(head + "; ".join(issues), fields=fields)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["fields"] = list(self.fields)
        return payload


class NotFoundError(HypermemError):
    """Referenced id or name does not resolve."""

    prefix = "not found"

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} {key!r} does not exist")
        self.kind = kind
        self.key = key


class StoreError(HypermemError):
    """Backend rejected or failed a call."""

    prefix = "store error"


class PartialTransitionError(StoreError):
    """Old record was deleted but its replacement could not be inserted."""

    def __init__(self, memory_id: str, lost_record: dict[str, Any], cause: str) -> None:
        super().__init__(
            f"memory {memory_id!r} was deleted but re-insert failed ({cause}); "
            "the lost record is attached to this error"
        )
        self.memory_id = memory_id
        self.lost_record = lost_record

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["lost_record"] = self.lost_record
        return payload


class OperationTimeoutError(HypermemError):
    """A store or provider call exceeded its timeout."""

    prefix = "timeout"


class ProviderError(HypermemError):
    """Embedding or classification provider failed."""

    prefix = "provider error"
