"""Local SQLite implementation of the store query surface."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from memory.errors import StoreError
from memory.schemas import (
    AgentRecord,
    Base,
    ContextRecord,
    EdgeRecord,
    EmbeddingRecord,
    MemoryRecord,
    ObjectRecord,
    ReferenceRecord,
    TraceRecord,
)
from memory.stores.base import StoreBackend
from memory.stores.sql_store import SQLStore
from memory.types.edges import EDGES_BY_RPC

logger = logging.getLogger("hypermem.store.local")

_NODE_TABLES: dict[str, type[Base]] = {
    "Memory": MemoryRecord,
    "Object": ObjectRecord,
    "Context": ContextRecord,
    "Agent": AgentRecord,
    "Trace": TraceRecord,
    "Reference": ReferenceRecord,
}
_PLURALS: dict[str, str] = {
    "Memories": "Memory",
    "Objects": "Object",
    "Contexts": "Context",
    "Agents": "Agent",
    "Traces": "Trace",
    "References": "Reference",
}
_KIND_BY_RPC_KIND = {"Memory": "memory", "Object": "object", "Context": "context",
                     "Agent": "agent", "Trace": "trace", "Reference": "reference"}

Handler = Callable[[str, dict[str, Any]], dict[str, Any]]


def _cosine_distance(a: list[float], b: list[float]) -> float:
    """Cosine distance rescaled to [0, 1]; opposite vectors are 1.0 apart."""
    if len(a) != len(b):
        raise StoreError(f"vector dimension mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 1.0
    cosine = max(-1.0, min(1.0, dot / (norm_a * norm_b)))
    return (1.0 - cosine) / 2.0


class LocalStore(StoreBackend):
    """Graph-vector store over SQLite with insert/delete-only semantics.

    Deletes never cascade: edges and embeddings of a deleted node stay behind
    and traversals skip endpoints that no longer resolve.
    """

    supports_stable_ids = True

    def __init__(self, db_path: Path) -> None:
        self.sql_store = SQLStore(db_path)
        self.sql_store.create_all()
        self._routes: tuple[tuple[str, Handler], ...] = (
            ("createEdge", self._create_edge),
            ("create", self._create),
            ("getAll", self._get_all),
            ("get", self._get),
            ("delete", self._delete),
            ("traverse", self._traverse),
            ("vectorSearch", self._vector_search),
            ("add", self._add_embedding),
        )

    def query(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        for prefix, handler in self._routes:
            if name.startswith(prefix):
                logger.debug("query %s", name)
                try:
                    return handler(name[len(prefix):], dict(params))
                except SQLAlchemyError as exc:
                    raise StoreError(f"{name} failed: {exc}") from exc
        raise StoreError(f"unknown query: {name}")

    def close(self) -> None:
        self.sql_store.dispose()

    @staticmethod
    def _table(kind: str) -> type[Base]:
        table = _NODE_TABLES.get(kind)
        if table is None:
            raise StoreError(f"unknown entity kind: {kind}")
        return table

    @staticmethod
    def _row_dict(row: Base) -> dict[str, Any]:
        return {c.name: getattr(row, c.name) for c in row.__table__.columns if c.name != "seq"}

    @staticmethod
    def _require(params: dict[str, Any], key: str) -> Any:
        value = params.get(key)
        if value is None or value == "":
            raise StoreError(f"missing parameter: {key}")
        return value

    def _create(self, kind: str, params: dict[str, Any]) -> dict[str, Any]:
        table = self._table(kind)
        entity_id = str(params.pop("id", "") or uuid.uuid4())
        columns = {c.name for c in table.__table__.columns} - {"id", "seq"}
        unknown = sorted(set(params) - columns)
        if unknown:
            raise StoreError(f"unknown fields for {kind}: {', '.join(unknown)}")
        with self.sql_store.session() as sess:
            if sess.get(table, entity_id) is not None:
                raise StoreError(f"{kind} id {entity_id!r} already exists")
            seq = (sess.query(func.max(table.seq)).scalar() or 0) + 1
            row = table(id=entity_id, seq=seq, **params)
            sess.add(row)
            sess.flush()
            return {"entity": self._row_dict(row)}

    def _get(self, suffix: str, params: dict[str, Any]) -> dict[str, Any]:
        if suffix.endswith("ByName"):
            table = self._table(suffix[: -len("ByName")])
            if "name" not in table.__table__.columns:
                raise StoreError(f"{suffix[:-6]} has no name field")
            name = self._require(params, "name")
            with self.sql_store.session() as sess:
                row = sess.query(table).filter(table.name == name).order_by(table.seq).first()
                return {"entity": self._row_dict(row) if row is not None else None}
        for field in ("Type", "Status"):
            if suffix.endswith(f"By{field}"):
                return self._get_filtered(suffix[: -len(field) - 2], field.lower(), params)
        table = self._table(suffix)
        with self.sql_store.session() as sess:
            row = sess.get(table, str(self._require(params, "id")))
            return {"entity": self._row_dict(row) if row is not None else None}

    def _get_filtered(self, plural: str, field: str, params: dict[str, Any]) -> dict[str, Any]:
        table = self._table(_PLURALS.get(plural, ""))
        if field not in table.__table__.columns:
            raise StoreError(f"{plural} cannot be filtered by {field}")
        value = self._require(params, field)
        with self.sql_store.session() as sess:
            rows = (
                sess.query(table)
                .filter(getattr(table, field) == value)
                .order_by(table.seq)
                .all()
            )
            return {"entities": [self._row_dict(row) for row in rows]}

    def _get_all(self, plural: str, params: dict[str, Any]) -> dict[str, Any]:
        _ = params
        table = self._table(_PLURALS.get(plural, ""))
        with self.sql_store.session() as sess:
            rows = sess.query(table).order_by(table.seq).all()
            return {"entities": [self._row_dict(row) for row in rows]}

    def _delete(self, kind: str, params: dict[str, Any]) -> dict[str, Any]:
        table = self._table(kind)
        with self.sql_store.session() as sess:
            row = sess.get(table, str(self._require(params, "id")))
            if row is not None:
                sess.delete(row)
        return {}

    def _create_edge(self, rpc: str, params: dict[str, Any]) -> dict[str, Any]:
        if rpc not in EDGES_BY_RPC:
            raise StoreError(f"unknown edge kind: {rpc}")
        from_id = str(self._require(params, "from_id"))
        to_id = str(self._require(params, "to_id"))
        attrs = {k: v for k, v in params.items() if k not in {"from_id", "to_id"}}
        with self.sql_store.session() as sess:
            row = EdgeRecord(kind=rpc, from_id=from_id, to_id=to_id, attrs=attrs)
            sess.add(row)
            sess.flush()
            return {"edge": {"kind": rpc, "from_id": from_id, "to_id": to_id, "attrs": attrs}}

    def _traverse(self, suffix: str, params: dict[str, Any]) -> dict[str, Any]:
        if suffix.endswith("Out"):
            rpc, outgoing = suffix[:-3], True
        elif suffix.endswith("In"):
            rpc, outgoing = suffix[:-2], False
        else:
            raise StoreError(f"traversal needs a direction: {suffix}")
        spec = EDGES_BY_RPC.get(rpc)
        if spec is None:
            raise StoreError(f"unknown edge kind: {rpc}")
        node_kind = spec.target if outgoing else spec.source
        table = self._table(node_kind.value.capitalize())
        node_id = str(self._require(params, "id"))
        with self.sql_store.session() as sess:
            edges = sess.query(EdgeRecord).filter(EdgeRecord.kind == rpc)
            if outgoing:
                edges = edges.filter(EdgeRecord.from_id == node_id)
            else:
                edges = edges.filter(EdgeRecord.to_id == node_id)
            neighbor_ids = [e.to_id if outgoing else e.from_id for e in edges.order_by(EdgeRecord.id)]
            return {"entities": self._resolve_nodes(sess, table, neighbor_ids)}

    def _resolve_nodes(self, sess: Session, table: type[Base], ids: list[str]) -> list[dict[str, Any]]:
        nodes: list[dict[str, Any]] = []
        for node_id in dict.fromkeys(ids):
            row = sess.get(table, node_id)
            if row is not None:
                nodes.append(self._row_dict(row))
        return nodes

    def _add_embedding(self, suffix: str, params: dict[str, Any]) -> dict[str, Any]:
        if not suffix.endswith("Embedding"):
            raise StoreError(f"unknown query: add{suffix}")
        kind = suffix[: -len("Embedding")]
        self._table(kind)
        vector = [float(v) for v in self._require(params, "vector")]
        with self.sql_store.session() as sess:
            row = EmbeddingRecord(
                owner_kind=_KIND_BY_RPC_KIND[kind],
                owner_id=str(self._require(params, "owner_id")),
                chunk_index=int(params.get("chunk_index", 0) or 0),
                chunk_text=str(params.get("chunk_text", "") or ""),
                status=str(params.get("status", "") or ""),
                created_at=str(params.get("created_at", "") or ""),
                vector=vector,
            )
            sess.add(row)
            sess.flush()
            return {"embedding": {"id": row.id, "owner_id": row.owner_id}}

    def _vector_search(self, kind: str, params: dict[str, Any]) -> dict[str, Any]:
        self._table(kind)
        query_vector = [float(v) for v in self._require(params, "vector")]
        limit = int(params.get("limit", 10))
        with self.sql_store.session() as sess:
            rows = (
                sess.query(EmbeddingRecord)
                .filter(EmbeddingRecord.owner_kind == _KIND_BY_RPC_KIND[kind])
                .order_by(EmbeddingRecord.id)
                .all()
            )
            scored = [(_cosine_distance(query_vector, list(row.vector or [])), row) for row in rows]
        scored.sort(key=lambda pair: pair[0])
        return {
            "results": [
                {
                    "owner_id": row.owner_id,
                    "distance": distance,
                    "chunk_index": row.chunk_index,
                    "chunk_text": row.chunk_text,
                    "status": row.status,
                }
                for distance, row in scored[:limit]
            ]
        }
