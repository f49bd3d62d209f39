"""Typer command handlers.

Handlers return plain data; ``emit`` renders it as JSON or text and maps
handled errors to ``<prefix>: <message>`` with exit code 1.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel

from core.orchestrator import Orchestrator, RuntimeBundle
from memory.errors import HypermemError, ValidationError
from memory.ingest import WriteRequest
from memory.types import EdgeKind, EntityKind, MemoryType, utc_now
from memory.validation import validate_model
from ui.cli import formatting

# list alias command -> memory type
LIST_ALIASES: dict[str, MemoryType] = {
    "decisions": MemoryType.DECISION,
    "problems": MemoryType.PROBLEM,
    "rules": MemoryType.RULE,
    "best-practices": MemoryType.BEST_PRACTICE,
    "conventions": MemoryType.CONVENTION,
    "anti-patterns": MemoryType.ANTI_PATTERN,
    "traits": MemoryType.TRAIT,
    "preferences": MemoryType.PREFERENCE,
    "causals": MemoryType.CAUSAL,
    "versions": MemoryType.VERSION,
}

# link subcommand -> (edge, target kind resolved by id or name)
LINK_COMMANDS: dict[str, tuple[EdgeKind, EntityKind]] = {
    "about": (EdgeKind.ABOUT, EntityKind.OBJECT),
    "aboutref": (EdgeKind.ABOUT_REF, EntityKind.REFERENCE),
    "context": (EdgeKind.IN_CONTEXT, EntityKind.CONTEXT),
    "proposedby": (EdgeKind.PROPOSED_BY, EntityKind.AGENT),
    "versionof": (EdgeKind.VERSION_OF, EntityKind.OBJECT),
    "trace": (EdgeKind.HAS_EVIDENCE, EntityKind.TRACE),
    "evidence": (EdgeKind.HAS_EVIDENCE_REF, EntityKind.REFERENCE),
    "depends": (EdgeKind.DEPENDS_ON, EntityKind.MEMORY),
    "causal": (EdgeKind.CAUSAL, EntityKind.MEMORY),
    "cause": (EdgeKind.HAS_CAUSE, EntityKind.MEMORY),
    "effect": (EdgeKind.HAS_EFFECT, EntityKind.MEMORY),
    "related": (EdgeKind.RELATED, EntityKind.MEMORY),
}


def _runtime(root: Path | None = None) -> RuntimeBundle:
    bundle = Orchestrator(root=root).build()
    return bundle


@contextmanager
def runtime() -> Iterator[RuntimeBundle]:
    bundle = _runtime()
    try:
        yield bundle
    finally:
        bundle.close()


def emit(
    handler: Callable[[], Any],
    as_json: bool,
    render: Callable[[Any], str] = formatting.render_value,
) -> None:
    """Run ``handler`` and print its result; handled errors exit with code 1."""
    try:
        result = handler()
    except HypermemError as exc:
        if as_json:
            typer.echo(json.dumps(exc.to_dict(), indent=2, default=str), err=True)
        else:
            typer.echo(f"{exc.prefix}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if as_json:
        typer.echo(json.dumps(_json_safe(result), indent=2))
    else:
        typer.echo(render(result))


def _parse_datetime(value: str | None, field: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO-8601 timestamp, got {value!r}", fields=[field]) from exc


def add_memory(
    statement: str,
    memory_type: str | None = None,
    state: str | None = None,
    confidence: str | None = None,
    title: str | None = None,
    tags: list[str] | None = None,
    notes: str | None = None,
    contributors: list[str] | None = None,
    valid_from: str | None = None,
    valid_to: str | None = None,
    objects: list[str] | None = None,
    contexts: list[str] | None = None,
    agent: str | None = None,
) -> dict[str, Any]:
    request = validate_model(
        WriteRequest,
        {
            "statement": statement,
            "type": memory_type,
            "state": state,
            "confidence": confidence,
            "title": title,
            "tags": tags or [],
            "notes": notes,
            "contributors": contributors or [],
            "valid_from": _parse_datetime(valid_from, "valid_from"),
            "valid_to": _parse_datetime(valid_to, "valid_to"),
            "objects": objects or [],
            "contexts": contexts or [],
            "proposed_by": agent,
        },
        context="memory",
    )
    with runtime() as bundle:
        return bundle.writer.run(request).to_dict()


def list_memories(
    memory_type: str | None = None, status: str | None = None, include_all: bool = False
) -> list[dict[str, Any]]:
    with runtime() as bundle:
        memories = bundle.reader.list_memories(memory_type=memory_type, status=status, include_all=include_all)
        return [m.model_dump(mode="json") for m in memories]


def search(
    query: str, limit: int | None = None, status: str | None = None, include_dimmed: bool = False
) -> list[dict[str, Any]]:
    with runtime() as bundle:
        results = bundle.reader.search(query, limit=limit, status=status, include_dimmed=include_dimmed)
        return [r.to_dict() for r in results]


def text_search(
    text: str, limit: int | None = None, status: str | None = None, include_dimmed: bool = False
) -> list[dict[str, Any]]:
    with runtime() as bundle:
        memories = bundle.reader.text_search(text, limit=limit, status=status, include_dimmed=include_dimmed)
        return [m.model_dump(mode="json") for m in memories]


def show_memory(memory_id: str, with_graph: bool = False) -> dict[str, Any]:
    with runtime() as bundle:
        payload: dict[str, Any] = {"memory": bundle.reader.get(memory_id).model_dump(mode="json")}
        if with_graph:
            payload["graph"] = {
                name: [entity.model_dump(mode="json") for entity in entities]
                for name, entities in bundle.graph.neighborhood(memory_id).items()
            }
        return payload


def transition(memory_id: str, action: str, status: str | None = None) -> dict[str, Any]:
    """Apply a lifecycle action: dim, undim, archive, validate or set."""
    with runtime() as bundle:
        lifecycle = bundle.lifecycle
        if action == "set":
            change = lifecycle.transition(memory_id, status or "")
        else:
            change = getattr(lifecycle, action)(memory_id)
        return change.to_dict()


def forget(memory_id: str) -> dict[str, Any]:
    with runtime() as bundle:
        memory = bundle.lifecycle.forget(memory_id)
        return {"forgotten": memory.model_dump(mode="json")}


def reality_check() -> dict[str, Any]:
    with runtime() as bundle:
        rules = bundle.reader.reminders()
        return {"as_of": utc_now().isoformat(), "rules": [m.model_dump(mode="json") for m in rules]}


def link(name: str, memory_id: str, target: str, **attrs: Any) -> dict[str, Any]:
    edge, target_kind = LINK_COMMANDS[name]
    with runtime() as bundle:
        if target_kind is EntityKind.MEMORY:
            target_id = target
        else:
            target_id = bundle.catalog.get(target_kind, target).id
        created = bundle.entities.create_edge(edge, memory_id, target_id, **{k: v for k, v in attrs.items() if v})
        return created.to_dict()


def link_part_of(obj: str, context: str) -> dict[str, Any]:
    with runtime() as bundle:
        object_id = bundle.catalog.get(EntityKind.OBJECT, obj).id
        context_id = bundle.catalog.get(EntityKind.CONTEXT, context).id
        return bundle.entities.create_edge(EdgeKind.PART_OF, object_id, context_id).to_dict()


def supersede(new_id: str, old_id: str, reason: str) -> dict[str, Any]:
    with runtime() as bundle:
        return bundle.lifecycle.supersede(new_id, old_id, reason).to_dict()


def contradict(first_id: str, second_id: str) -> dict[str, Any]:
    with runtime() as bundle:
        return bundle.lifecycle.contradict(first_id, second_id).to_dict()


def catalog_add(kind: EntityKind, fields: dict[str, Any]) -> dict[str, Any]:
    with runtime() as bundle:
        clean = {key: value for key, value in fields.items() if value is not None}
        return bundle.catalog.add(kind, clean).model_dump(mode="json")


def catalog_list(kind: EntityKind, entity_type: str | None = None) -> list[dict[str, Any]]:
    with runtime() as bundle:
        return [e.model_dump(mode="json") for e in bundle.catalog.list(kind, entity_type)]


def catalog_show(kind: EntityKind, key: str) -> dict[str, Any]:
    with runtime() as bundle:
        entity = bundle.catalog.get(kind, key)
        payload: dict[str, Any] = {"entity": entity.model_dump(mode="json")}
        if kind is EntityKind.OBJECT:
            payload["versions"] = [m.model_dump(mode="json") for m in bundle.graph.object_versions(entity.id)]
            payload["memories"] = [m.model_dump(mode="json") for m in bundle.graph.object_memories(entity.id)]
            payload["contexts"] = [c.model_dump(mode="json") for c in bundle.graph.object_contexts(entity.id)]
        elif kind is EntityKind.CONTEXT:
            payload["objects"] = [o.model_dump(mode="json") for o in bundle.graph.context_objects(entity.id)]
        return payload


def catalog_delete(kind: EntityKind, key: str) -> dict[str, Any]:
    with runtime() as bundle:
        return {"deleted": bundle.catalog.delete(kind, key).model_dump(mode="json")}


def catalog_search(kind: EntityKind, query: str, limit: int | None = None) -> list[dict[str, Any]]:
    with runtime() as bundle:
        if kind is EntityKind.TRACE:
            results = bundle.reader.search_traces(query, limit=limit)
        else:
            results = bundle.reader.search_references(query, limit=limit)
        return [r.to_dict() for r in results]


def config_show() -> dict[str, Any]:
    with runtime() as bundle:
        return bundle.config


def _json_safe(payload: object) -> object:
    """Convert models and datetimes to JSON-ready values."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if isinstance(payload, dict):
        return {k: _json_safe(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_json_safe(v) for v in payload]
    if hasattr(payload, "isoformat"):
        return payload.isoformat()
    return payload
