"""Memory models: the curated fact unit."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from memory.types.enums import Confidence, Contributor, MemoryState, MemoryStatus, MemoryType


def utc_now() -> datetime:
    """Return UTC datetime for default timestamps."""
    return datetime.now(UTC)


class MemoryInput(BaseModel):
    """Fully resolved memory record before the store assigns an id."""

    type: MemoryType
    state: MemoryState = MemoryState.FACT
    confidence: Confidence | None = Field(default=None, validate_default=True)
    statement: str = Field(min_length=1, max_length=4000)
    status: MemoryStatus = MemoryStatus.ACTIVE
    title: str | None = Field(default=None, max_length=200)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=4000)
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    last_validated_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    contributors: list[Contributor] = Field(default_factory=list)

    @field_validator("statement")
    @classmethod
    def _statement_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("statement must not be blank")
        return value

    @field_validator("confidence")
    @classmethod
    def _confidence_matches_state(
        cls, value: Confidence | None, info: ValidationInfo
    ) -> Confidence | None:
        state = info.data.get("state")
        if state is MemoryState.ASSUMPTION and value is None:
            raise ValueError("confidence is required when state is assumption")
        if state is MemoryState.FACT and value is not None:
            raise ValueError("confidence must be omitted when state is fact")
        return value

    @field_validator("contributors")
    @classmethod
    def _dedupe_contributors(cls, value: list[Contributor]) -> list[Contributor]:
        return list(dict.fromkeys(value))


class Memory(MemoryInput):
    """Persisted memory with its store-assigned id."""

    id: str

    @property
    def short_statement(self) -> str:
        return self.statement if len(self.statement) <= 60 else self.statement[:60] + "..."
