"""Typed CRUD, edge and vector operations over a store backend."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel

from governance.audit_logger import AuditLogger
from memory.codec import from_store, normalize_many, to_store_fields
from memory.errors import NotFoundError, StoreError, ValidationError
from memory.stores.base import StoreBackend
from memory.types import (
    EDGE_SPECS,
    Agent,
    Context,
    Direction,
    Edge,
    EdgeKind,
    EntityKind,
    Memory,
    ObjectEntity,
    Reference,
    Trace,
)

logger = logging.getLogger("hypermem.entities")

Entity = Union[Memory, ObjectEntity, Context, Agent, Trace, Reference]


@dataclass(frozen=True)
class KindSpec:
    """RPC naming and model class for one entity kind."""

    rpc: str
    plural: str
    model: type[BaseModel]
    has_name: bool = False
    has_type: bool = True


KIND_SPECS: dict[EntityKind, KindSpec] = {
    EntityKind.MEMORY: KindSpec("Memory", "Memories", Memory),
    EntityKind.OBJECT: KindSpec("Object", "Objects", ObjectEntity, has_name=True),
    EntityKind.CONTEXT: KindSpec("Context", "Contexts", Context, has_name=True),
    EntityKind.AGENT: KindSpec("Agent", "Agents", Agent, has_name=True, has_type=False),
    EntityKind.TRACE: KindSpec("Trace", "Traces", Trace),
    EntityKind.REFERENCE: KindSpec("Reference", "References", Reference),
}


@dataclass(frozen=True)
class VectorHit:
    """One nearest-neighbor result from a vector search."""

    owner_id: str
    distance: float
    chunk_index: int = 0
    chunk_text: str = ""

    @property
    def similarity(self) -> float:
        return max(0.0, min(1.0, 1.0 - self.distance))


def _value(value: Any) -> Any:
    return getattr(value, "value", value)


class EntityStore:
    """Adapter between typed entities and the flat query-by-name backend.

    ``delete`` on a missing id raises ``NotFoundError``; it is not idempotent.
    Edge creation checks that both endpoints exist, since the backend does
    not enforce referential integrity.
    """

    def __init__(self, backend: StoreBackend, audit_logger: AuditLogger | None = None) -> None:
        self.backend = backend
        self.audit_logger = audit_logger

    @property
    def supports_stable_ids(self) -> bool:
        return bool(self.backend.supports_stable_ids)

    def _call(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        data = self.backend.query(name, params)
        return data if isinstance(data, dict) else {}

    def audit(self, action: str, kind: str, ids: list[str], inputs: dict[str, Any] | None = None) -> None:
        if self.audit_logger is not None:
            self.audit_logger.log(action=action, kind=kind, ids=ids, inputs=inputs)

    def _decode(self, kind: EntityKind, raw: Mapping[str, Any]) -> Entity:
        return from_store(KIND_SPECS[kind].model, raw)

    def _decode_many(self, kind: EntityKind, data: Any) -> list[Entity]:
        return [self._decode(kind, raw) for raw in normalize_many(data)]

    def create(
        self,
        kind: EntityKind,
        fields: BaseModel | Mapping[str, Any],
        entity_id: str | None = None,
    ) -> Entity:
        """Insert a node and return it with the store-assigned id.

        ``entity_id`` is forwarded only to backends that honor caller ids.
        """
        spec = KIND_SPECS[kind]
        params = to_store_fields(fields)
        if entity_id is not None and self.supports_stable_ids:
            params["id"] = entity_id
        data = self._call(f"create{spec.rpc}", params)
        raw = data.get("entity")
        if not raw:
            raise StoreError(f"backend returned no {kind.value} for create{spec.rpc}")
        entity = self._decode(kind, raw)
        self.audit("create", kind.value, [entity.id], params)
        return entity

    def get(self, kind: EntityKind, entity_id: str) -> Entity | None:
        data = self._call(f"get{KIND_SPECS[kind].rpc}", {"id": entity_id})
        raw = data.get("entity")
        return self._decode(kind, raw) if raw else None

    def require(self, kind: EntityKind, entity_id: str) -> Entity:
        entity = self.get(kind, entity_id)
        if entity is None:
            raise NotFoundError(kind.value, entity_id)
        return entity

    def get_by_name(self, kind: EntityKind, name: str) -> Entity | None:
        """Look up by human-readable name; on collisions any match may be returned."""
        spec = KIND_SPECS[kind]
        if not spec.has_name:
            raise ValidationError(f"{kind.value} has no name field", fields=["name"])
        data = self._call(f"get{spec.rpc}ByName", {"name": name})
        raw = data.get("entity")
        return self._decode(kind, raw) if raw else None

    def list_all(self, kind: EntityKind) -> list[Entity]:
        data = self._call(f"getAll{KIND_SPECS[kind].plural}", {})
        return self._decode_many(kind, data.get("entities"))

    def list_by_field(self, kind: EntityKind, field: str, value: Any) -> list[Entity]:
        spec = KIND_SPECS[kind]
        value = _value(value)
        if field == "type" and spec.has_type:
            data = self._call(f"get{spec.plural}ByType", {"type": value})
            return self._decode_many(kind, data.get("entities"))
        if field == "status" and kind is EntityKind.MEMORY:
            data = self._call("getMemoriesByStatus", {"status": value})
            return self._decode_many(kind, data.get("entities"))
        if field not in spec.model.model_fields:
            raise ValidationError(f"{kind.value} has no field {field!r}", fields=[field])
        return [e for e in self.list_all(kind) if _value(getattr(e, field)) == value]

    def delete(self, kind: EntityKind, entity_id: str, must_exist: bool = True) -> None:
        if must_exist:
            self.require(kind, entity_id)
        self._call(f"delete{KIND_SPECS[kind].rpc}", {"id": entity_id})
        self.audit("delete", kind.value, [entity_id])

    def create_edge(self, edge: EdgeKind, from_id: str, to_id: str, **attrs: Any) -> Edge:
        """Create a typed edge after checking both endpoints resolve."""
        spec = EDGE_SPECS[edge]
        missing = [name for name in spec.attrs if not attrs.get(name)]
        if missing:
            raise ValidationError(
                f"{edge.value} edge requires {', '.join(missing)}", fields=missing
            )
        if spec.source is spec.target and from_id == to_id:
            raise ValidationError(f"{edge.value} edge cannot point at itself", fields=["to_id"])
        self.require(spec.source, from_id)
        self.require(spec.target, to_id)
        params = {"from_id": from_id, "to_id": to_id, **{k: str(v) for k, v in attrs.items()}}
        self._call(f"createEdge{spec.rpc}", params)
        self.audit("link", edge.value, [from_id, to_id], params)
        return Edge(kind=edge, from_id=from_id, to_id=to_id, attrs=dict(attrs))

    def traverse(
        self, edge: EdgeKind, entity_id: str, direction: Direction = Direction.OUT
    ) -> list[Entity]:
        """One-hop neighbors across ``edge``; dangling endpoints are skipped."""
        spec = EDGE_SPECS[edge]
        outgoing = direction is Direction.OUT
        neighbor_kind = spec.target if outgoing else spec.source
        suffix = "Out" if outgoing else "In"
        data = self._call(f"traverse{spec.rpc}{suffix}", {"id": entity_id})
        return self._decode_many(neighbor_kind, data.get("entities"))

    def add_embedding(
        self,
        kind: EntityKind,
        owner_id: str,
        vector: list[float],
        chunk_index: int = 0,
        chunk_text: str = "",
        status: str = "",
        created_at: str = "",
    ) -> None:
        self._call(
            f"add{KIND_SPECS[kind].rpc}Embedding",
            {
                "owner_id": owner_id,
                "vector": [float(v) for v in vector],
                "chunk_index": chunk_index,
                "chunk_text": chunk_text,
                "status": status,
                "created_at": created_at,
            },
        )

    def vector_search(self, kind: EntityKind, vector: list[float], limit: int) -> list[VectorHit]:
        data = self._call(
            f"vectorSearch{KIND_SPECS[kind].rpc}",
            {"vector": [float(v) for v in vector], "limit": int(limit)},
        )
        hits: list[VectorHit] = []
        for raw in normalize_many(data.get("results")):
            owner_id = raw.get("owner_id") or raw.get("id")
            if not owner_id:
                logger.warning("vector hit without owner id dropped: %s", raw)
                continue
            hits.append(
                VectorHit(
                    owner_id=str(owner_id),
                    distance=float(raw.get("distance", raw.get("score", 1.0))),
                    chunk_index=int(raw.get("chunk_index") or 0),
                    chunk_text=str(raw.get("chunk_text") or ""),
                )
            )
        return hits
