"""Entity model, enum and codec tests."""

from __future__ import annotations

import pytest

from memory.codec import decode_list, encode_list, from_store, normalize_many, to_store_fields
from memory.errors import StoreError, ValidationError
from memory.types import (
    Confidence,
    Contributor,
    Memory,
    MemoryInput,
    MemoryState,
    MemoryStatus,
    MemoryType,
    ObjectInput,
)
from memory.validation import parse_enum, validate_model


def test_assumption_requires_confidence() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_model(MemoryInput, {"type": "decision", "state": "assumption", "statement": "Use Redis"})
    assert "confidence" in excinfo.value.fields


def test_fact_rejects_confidence() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_model(
            MemoryInput,
            {"type": "decision", "state": "fact", "confidence": "high", "statement": "Use Redis"},
        )
    assert "confidence" in excinfo.value.fields


def test_assumption_with_confidence_and_fact_without_are_valid() -> None:
    assumption = MemoryInput(
        type=MemoryType.DECISION,
        state=MemoryState.ASSUMPTION,
        confidence=Confidence.LOW,
        statement="Traffic will double next year",
    )
    fact = MemoryInput(type=MemoryType.RULE, statement="Never commit secrets")

    assert assumption.confidence is Confidence.LOW
    assert fact.state is MemoryState.FACT
    assert fact.confidence is None
    assert fact.status is MemoryStatus.ACTIVE
    assert fact.tags == []


def test_statement_bounds() -> None:
    with pytest.raises(ValidationError):
        validate_model(MemoryInput, {"type": "rule", "statement": "   "})
    with pytest.raises(ValidationError) as excinfo:
        validate_model(MemoryInput, {"type": "rule", "statement": "x" * 4001})
    assert excinfo.value.fields == ["statement"]
    with pytest.raises(ValidationError) as excinfo:
        validate_model(MemoryInput, {"type": "rule", "statement": "ok", "title": "t" * 201})
    assert excinfo.value.fields == ["title"]


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_model(MemoryInput, {"type": "opinion", "statement": "Tabs are better"})
    assert excinfo.value.fields == ["type"]
    assert excinfo.value.prefix == "validation error"


def test_enums_parse_any_casing() -> None:
    assert MemoryType("BestPractice") is MemoryType.BEST_PRACTICE
    assert MemoryType("best-practice") is MemoryType.BEST_PRACTICE
    assert MemoryType("ANTI_PATTERN") is MemoryType.ANTI_PATTERN
    assert MemoryStatus("ACTIVE") is MemoryStatus.ACTIVE
    assert str(MemoryStatus.DIMMED) == "dimmed"
    with pytest.raises(ValueError):
        MemoryStatus("deleted")


def test_parse_enum_names_choices() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_enum(MemoryStatus, "gone", "status")
    assert "archived" in str(excinfo.value)
    assert excinfo.value.fields == ["status"]


def test_contributors_are_deduplicated_in_order() -> None:
    memory = MemoryInput(
        type=MemoryType.PREFERENCE,
        statement="Prefers dark mode",
        contributors=["agent", "human", "agent"],
    )
    assert memory.contributors == [Contributor.AGENT, Contributor.HUMAN]


def test_composite_fields_round_trip_through_store_encoding() -> None:
    memory = MemoryInput(type=MemoryType.CONVENTION, statement="Use snake_case", tags=["a", "b"])
    fields = to_store_fields(memory)

    assert isinstance(fields["tags"], str)
    assert fields["notes"] == ""
    restored = from_store(Memory, {**fields, "id": "m1"})
    assert restored.tags == ["a", "b"]
    assert restored.notes is None
    assert restored.created_at == memory.created_at


def test_decode_list_never_returns_none() -> None:
    assert decode_list(None) == []
    assert decode_list("") == []
    assert decode_list("null") == []
    assert decode_list(encode_list(["x", "y"])) == ["x", "y"]
    assert decode_list("x, y") == ["x", "y"]


def test_normalize_many_accepts_single_object_or_array() -> None:
    assert normalize_many(None) == []
    assert normalize_many({"id": "1"}) == [{"id": "1"}]
    assert normalize_many([{"id": "1"}, {"id": "2"}]) == [{"id": "1"}, {"id": "2"}]
    with pytest.raises(StoreError):
        normalize_many("oops")


def test_malformed_store_record_is_a_store_error() -> None:
    with pytest.raises(StoreError):
        from_store(Memory, {"id": "m1", "type": "nonsense", "statement": "x"})


def test_object_name_bounds() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_model(ObjectInput, {"type": "database", "name": ""})
    assert excinfo.value.fields == ["name"]
