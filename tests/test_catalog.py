"""Catalog and text chunking tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from llm.providers.mock_provider import MockEmbedder
from memory.catalog import Catalog
from memory.entity_store import EntityStore
from memory.errors import NotFoundError, ValidationError
from memory.retrieval import ReadPipeline
from memory.stores.local_store import LocalStore
from memory.text_prep import CHUNK_SIZE, chunk_text, embedding_text, prepare_chunks
from memory.types import EntityKind, ObjectType


def build_catalog(tmp_path: Path) -> tuple[Catalog, ReadPipeline]:
    entities = EntityStore(LocalStore(tmp_path / "mem.db"))
    embedder = MockEmbedder()
    return Catalog(entities, embedder=embedder), ReadPipeline(entities, embedder)


def test_add_get_by_id_or_name_and_delete(tmp_path: Path) -> None:
    catalog, _ = build_catalog(tmp_path)
    pg = catalog.add(EntityKind.OBJECT, {"type": "database", "name": "Postgres", "reference": "pg16"})

    assert catalog.get("object", pg.id).name == "Postgres"
    assert catalog.get(EntityKind.OBJECT, "Postgres").id == pg.id
    assert catalog.delete(EntityKind.OBJECT, "Postgres").id == pg.id
    with pytest.raises(NotFoundError):
        catalog.get(EntityKind.OBJECT, "Postgres")


def test_add_validates_fields(tmp_path: Path) -> None:
    catalog, _ = build_catalog(tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        catalog.add(EntityKind.OBJECT, {"type": "spaceship", "name": "Enterprise"})
    assert excinfo.value.fields == ["type"]
    with pytest.raises(ValidationError):
        catalog.add(EntityKind.AGENT, {"name": "planner"})
    with pytest.raises(ValidationError):
        catalog.add(EntityKind.MEMORY, {"statement": "not here"})


def test_list_by_type(tmp_path: Path) -> None:
    catalog, _ = build_catalog(tmp_path)
    catalog.add(EntityKind.OBJECT, {"type": "database", "name": "Postgres"})
    catalog.add(EntityKind.OBJECT, {"type": "language", "name": "Go"})
    catalog.add(EntityKind.AGENT, {"name": "critic", "model": "claude"})

    assert [o.name for o in catalog.list(EntityKind.OBJECT, "Database")] == ["Postgres"]
    assert [o.type for o in catalog.list(EntityKind.OBJECT)] == [ObjectType.DATABASE, ObjectType.LANGUAGE]
    assert [a.name for a in catalog.list(EntityKind.AGENT)] == ["critic"]
    with pytest.raises(ValidationError):
        catalog.list(EntityKind.OBJECT, "spaceship")
    with pytest.raises(ValidationError):
        catalog.list(EntityKind.AGENT, "anything")


def test_traces_and_references_are_chunk_searchable(tmp_path: Path) -> None:
    catalog, reader = build_catalog(tmp_path)
    trace = catalog.add(
        EntityKind.TRACE,
        {"type": "session_log", "summary": "Debugged flaky payment webhook", "payload": "retry storm"},
    )
    long_text = "\n\n".join(f"Section {i} covers kubernetes autoscaling limits in depth." * 4 for i in range(6))
    ref = catalog.add(EntityKind.REFERENCE, {"type": "doc", "title": "Autoscaling guide", "full_text": long_text})

    [trace_hit] = reader.search_traces("payment webhook", limit=1)
    ref_hits = reader.search_references("kubernetes autoscaling", limit=5)

    assert trace_hit.entity.id == trace.id
    assert trace_hit.chunk_index == 0
    assert [hit.entity.id for hit in ref_hits] == [ref.id]
    assert ref_hits[0].chunk_text


def test_embedding_text_appends_notes_after_blank_line() -> None:
    assert embedding_text("Statement") == "Statement"
    assert embedding_text("Statement", "  ") == "Statement"
    assert embedding_text("Statement", "Notes") == "Statement\n\nNotes"


def test_chunking_respects_size_and_keeps_short_text_whole() -> None:
    paragraphs = ["word " * 150, "Short closing line."]
    chunks = chunk_text("\n\n".join(paragraphs))

    assert len(chunks) > 1
    assert all(len(chunk) <= CHUNK_SIZE for chunk in chunks)
    assert prepare_chunks("title", None, "body") == ["title\n\nbody"]
    assert prepare_chunks(None, "  ") == []
    assert chunk_text("") == []
