"""Graph traversal tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from memory.entity_store import EntityStore
from memory.errors import NotFoundError
from memory.graph import GraphNavigator
from memory.stores.local_store import LocalStore
from memory.types import (
    AgentInput,
    ContextInput,
    ContextType,
    EdgeKind,
    EntityKind,
    MemoryInput,
    MemoryType,
    ObjectInput,
    ObjectType,
    ReferenceInput,
    ReferenceType,
    TraceInput,
    TraceType,
)


def build_graph(tmp_path: Path) -> tuple[GraphNavigator, EntityStore]:
    entities = EntityStore(LocalStore(tmp_path / "mem.db"))
    return GraphNavigator(entities), entities


def add_memory(entities: EntityStore, statement: str, **fields: Any) -> Any:
    fields.setdefault("type", MemoryType.DECISION)
    return entities.create(EntityKind.MEMORY, MemoryInput(statement=statement, **fields))


def test_empty_traversals_return_empty_lists(tmp_path: Path) -> None:
    graph, entities = build_graph(tmp_path)
    memory = add_memory(entities, "Lonely memory")

    assert graph.objects(memory.id) == []
    assert graph.superseded_by(memory.id) == []
    assert graph.contradictions(memory.id) == []
    assert graph.dependents(memory.id) == []
    assert graph.object_versions("no-such-object") == []


def test_memory_links_resolve_by_edge_kind(tmp_path: Path) -> None:
    graph, entities = build_graph(tmp_path)
    memory = add_memory(entities, "Use Django for admin")
    django = entities.create(EntityKind.OBJECT, ObjectInput(type=ObjectType.FRAMEWORK, name="Django"))
    backoffice = entities.create(EntityKind.CONTEXT, ContextInput(type=ContextType.PROJECT, name="backoffice"))
    agent = entities.create(EntityKind.AGENT, AgentInput(name="planner", model="gpt-4o"))
    trace = entities.create(EntityKind.TRACE, TraceInput(type=TraceType.EVENT, summary="Admin shipped"))
    doc = entities.create(EntityKind.REFERENCE, ReferenceInput(type=ReferenceType.DOC, title="Django admin docs"))
    entities.create_edge(EdgeKind.ABOUT, memory.id, django.id)
    entities.create_edge(EdgeKind.IN_CONTEXT, memory.id, backoffice.id)
    entities.create_edge(EdgeKind.PROPOSED_BY, memory.id, agent.id)
    entities.create_edge(EdgeKind.HAS_EVIDENCE, memory.id, trace.id)
    entities.create_edge(EdgeKind.HAS_EVIDENCE_REF, memory.id, doc.id)
    entities.create_edge(EdgeKind.PART_OF, django.id, backoffice.id)

    assert [o.name for o in graph.objects(memory.id)] == ["Django"]
    assert [c.name for c in graph.contexts(memory.id)] == ["backoffice"]
    assert [a.name for a in graph.agents(memory.id)] == ["planner"]
    assert [t.summary for t in graph.evidence_traces(memory.id)] == ["Admin shipped"]
    assert [r.title for r in graph.evidence_references(memory.id)] == ["Django admin docs"]
    assert graph.about_references(memory.id) == []
    assert [m.id for m in graph.object_memories(django.id)] == [memory.id]
    assert [c.name for c in graph.object_contexts(django.id)] == ["backoffice"]
    assert [o.name for o in graph.context_objects(backoffice.id)] == ["Django"]


def test_memory_to_memory_relations(tmp_path: Path) -> None:
    graph, entities = build_graph(tmp_path)
    base = add_memory(entities, "Service A exists")
    dependent = add_memory(entities, "Service B calls A")
    cause = add_memory(entities, "Disk filled up", type=MemoryType.PROBLEM)
    effect = add_memory(entities, "Writes failed", type=MemoryType.PROBLEM)
    entities.create_edge(EdgeKind.DEPENDS_ON, dependent.id, base.id)
    entities.create_edge(EdgeKind.HAS_CAUSE, effect.id, cause.id)
    entities.create_edge(EdgeKind.HAS_EFFECT, cause.id, effect.id)
    entities.create_edge(EdgeKind.RELATED, base.id, cause.id)
    entities.create_edge(EdgeKind.CAUSAL, cause.id, effect.id, description="no space left")

    assert [m.id for m in graph.dependencies(dependent.id)] == [base.id]
    assert [m.id for m in graph.dependents(base.id)] == [dependent.id]
    assert [m.id for m in graph.causes(effect.id)] == [cause.id]
    assert [m.id for m in graph.effects(cause.id)] == [effect.id]
    assert [m.id for m in graph.related(cause.id)] == [base.id]
    assert [m.id for m in graph.related(base.id)] == [cause.id]


def test_object_versions_only_include_version_memories(tmp_path: Path) -> None:
    graph, entities = build_graph(tmp_path)
    python = entities.create(EntityKind.OBJECT, ObjectInput(type=ObjectType.LANGUAGE, name="Python"))
    version = add_memory(entities, "Python 3.12 in production", type=MemoryType.VERSION)
    stray = add_memory(entities, "Python is great", type=MemoryType.PREFERENCE)
    entities.create_edge(EdgeKind.VERSION_OF, version.id, python.id)
    entities.create_edge(EdgeKind.VERSION_OF, stray.id, python.id)

    assert [m.id for m in graph.object_versions(python.id)] == [version.id]


def test_neighborhood_collects_every_relation(tmp_path: Path) -> None:
    graph, entities = build_graph(tmp_path)
    new = add_memory(entities, "Use Ruff")
    old = add_memory(entities, "Use Flake8")
    rival = add_memory(entities, "Use Pylint")
    entities.create_edge(EdgeKind.SUPERSEDES, new.id, old.id, reason="speed")
    entities.create_edge(EdgeKind.CONTRADICTS, rival.id, new.id)

    sections = graph.neighborhood(new.id)

    assert [m.id for m in sections["supersedes"]] == [old.id]
    assert [m.id for m in sections["contradictions"]] == [rival.id]
    assert sections["objects"] == []
    assert {"superseded_by", "dependencies", "evidence_traces", "related"} <= set(sections)
    with pytest.raises(NotFoundError):
        graph.neighborhood("missing")
