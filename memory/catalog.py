"""Management of the non-memory entities: objects, contexts, agents, traces, references."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from llm.base_llm import BaseEmbedder
from memory.entity_store import KIND_SPECS, Entity, EntityStore
from memory.errors import NotFoundError, ValidationError
from memory.text_prep import prepare_chunks
from memory.types import (
    AgentInput,
    ContextInput,
    EntityKind,
    ObjectInput,
    Reference,
    ReferenceInput,
    Trace,
    TraceInput,
)
from memory.validation import parse_enum, validate_model

logger = logging.getLogger("hypermem.catalog")

INPUT_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.OBJECT: ObjectInput,
    EntityKind.CONTEXT: ContextInput,
    EntityKind.AGENT: AgentInput,
    EntityKind.TRACE: TraceInput,
    EntityKind.REFERENCE: ReferenceInput,
}

EMBEDDED_KINDS = frozenset({EntityKind.TRACE, EntityKind.REFERENCE})


def _chunk_source(entity: Entity) -> list[str]:
    if isinstance(entity, Trace):
        return prepare_chunks(entity.summary, entity.payload)
    if isinstance(entity, Reference):
        return prepare_chunks(entity.title, entity.snippet, entity.full_text)
    return []


class Catalog:
    """CRUD for linkable entities; traces and references are chunk-embedded on add."""

    def __init__(self, entities: EntityStore, embedder: BaseEmbedder | None = None) -> None:
        self.entities = entities
        self.embedder = embedder

    @staticmethod
    def _kind(kind: EntityKind | str) -> EntityKind:
        kind = EntityKind(kind)
        if kind is EntityKind.MEMORY:
            raise ValidationError("memories are written through the write pipeline", fields=["kind"])
        return kind

    def add(self, kind: EntityKind | str, fields: Mapping[str, Any] | BaseModel) -> Entity:
        kind = self._kind(kind)
        model = INPUT_MODELS[kind]
        data = fields if isinstance(fields, model) else validate_model(model, dict(fields), context=kind.value)
        entity = self.entities.create(kind, data)
        if kind in EMBEDDED_KINDS:
            self._embed(kind, entity)
        logger.info("%s %s created", kind.value, entity.id)
        return entity

    def _embed(self, kind: EntityKind, entity: Entity) -> int:
        if self.embedder is None:
            return 0
        chunks = _chunk_source(entity)
        if not chunks:
            return 0
        vectors = self.embedder.embed_batch(chunks)
        for index, (chunk, vector) in enumerate(zip(chunks, vectors)):
            self.entities.add_embedding(kind, entity.id, vector, chunk_index=index, chunk_text=chunk)
        logger.debug("%s %s embedded as %d chunk(s)", kind.value, entity.id, len(chunks))
        return len(chunks)

    def list(self, kind: EntityKind | str, entity_type: str | None = None) -> list[Entity]:
        kind = self._kind(kind)
        if entity_type is not None:
            if not KIND_SPECS[kind].has_type:
                raise ValidationError(f"{kind.value} has no type field", fields=["type"])
            type_enum = INPUT_MODELS[kind].model_fields["type"].annotation
            value = parse_enum(type_enum, entity_type, "type")
            return self.entities.list_by_field(kind, "type", value)
        return self.entities.list_all(kind)

    def get(self, kind: EntityKind | str, key: str) -> Entity:
        """Resolve by id, falling back to name for named kinds."""
        kind = self._kind(kind)
        entity = self.entities.get(kind, key)
        if entity is None and KIND_SPECS[kind].has_name:
            entity = self.entities.get_by_name(kind, key)
        if entity is None:
            raise NotFoundError(kind.value, key)
        return entity

    def delete(self, kind: EntityKind | str, key: str) -> Entity:
        """Delete by id or name; edges pointing at it are left dangling."""
        entity = self.get(kind, key)
        self.entities.delete(EntityKind(kind), entity.id)
        return entity
