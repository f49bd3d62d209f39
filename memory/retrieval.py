"""Read side: semantic search, text search and filtered listing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from llm.base_llm import BaseEmbedder
from memory.entity_store import EntityStore, VectorHit
from memory.errors import NotFoundError, ValidationError
from memory.types import EntityKind, Memory, MemoryStatus, MemoryType, Reference, Trace
from memory.validation import parse_optional_enum

logger = logging.getLogger("hypermem.retrieval")

DEFAULT_LIMIT = 10
OVERFETCH_FACTOR = 2


def is_visible(
    memory: Memory,
    status: MemoryStatus | None = None,
    include_dimmed: bool = False,
) -> bool:
    """Visibility policy shared by search and listing.

    An explicit status filter wins; otherwise dimmed memories are hidden
    unless ``include_dimmed`` is set.
    """
    if status is not None:
        return memory.status is status
    return include_dimmed or memory.status is not MemoryStatus.DIMMED


@dataclass
class SearchResult:
    """A memory with its similarity score (``1 - distance``)."""

    memory: Memory
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"score": round(self.score, 6), "memory": self.memory.model_dump(mode="json")}


@dataclass
class ChunkResult:
    """A trace or reference matched through one of its embedded chunks."""

    entity: Trace | Reference
    score: float
    chunk_index: int
    chunk_text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": round(self.score, 6),
            "chunk_index": self.chunk_index,
            "chunk_text": self.chunk_text,
            "entity": self.entity.model_dump(mode="json"),
        }


def _check_limit(limit: int) -> int:
    if limit < 1:
        raise ValidationError("limit must be a positive integer", fields=["limit"])
    return limit


def _check_query(query: str) -> str:
    if not query or not query.strip():
        raise ValidationError("query must not be empty", fields=["query"])
    return query


class ReadPipeline:
    """Embeds queries, over-fetches neighbors and applies the visibility policy."""

    def __init__(
        self,
        entities: EntityStore,
        embedder: BaseEmbedder,
        overfetch: int = OVERFETCH_FACTOR,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.entities = entities
        self.embedder = embedder
        self.overfetch = max(1, overfetch)
        self.default_limit = _check_limit(default_limit)

    def _limit(self, limit: int | None) -> int:
        return self.default_limit if limit is None else _check_limit(limit)

    def search(
        self,
        query: str,
        limit: int | None = None,
        status: MemoryStatus | str | None = None,
        include_dimmed: bool = False,
    ) -> list[SearchResult]:
        """Return at most ``limit`` visible memories ranked by similarity."""
        _check_query(query)
        limit = self._limit(limit)
        status = parse_optional_enum(MemoryStatus, status, "status")

        vector = self.embedder.embed(query)
        hits = self.entities.vector_search(EntityKind.MEMORY, vector, limit * self.overfetch)
        by_id = {memory.id: memory for memory in self.entities.list_all(EntityKind.MEMORY)}

        results: list[SearchResult] = []
        seen: set[str] = set()
        dangling = 0
        for hit in hits:
            memory = by_id.get(hit.owner_id)
            if memory is None:
                dangling += 1
                continue
            if memory.id in seen or not is_visible(memory, status, include_dimmed):
                continue
            seen.add(memory.id)
            results.append(SearchResult(memory=memory, score=hit.similarity))
        if dangling:
            logger.debug("%d vector hit(s) had no matching memory", dangling)

        # sorted() is stable, so equal scores keep vector-search order
        results = sorted(results, key=lambda r: r.score, reverse=True)
        return results[:limit]

    def text_search(
        self,
        text: str,
        limit: int | None = None,
        status: MemoryStatus | str | None = None,
        include_dimmed: bool = False,
    ) -> list[Memory]:
        """Case-insensitive substring match over statement, title, notes and tags."""
        needle = _check_query(text).strip().lower()
        limit = self._limit(limit)
        status = parse_optional_enum(MemoryStatus, status, "status")
        matches: list[Memory] = []
        for memory in self.entities.list_all(EntityKind.MEMORY):
            if not is_visible(memory, status, include_dimmed):
                continue
            haystack = " ".join(
                [memory.statement, memory.title or "", memory.notes or "", *memory.tags]
            ).lower()
            if needle in haystack:
                matches.append(memory)
                if len(matches) >= limit:
                    break
        return matches

    def list_memories(
        self,
        memory_type: MemoryType | str | None = None,
        status: MemoryStatus | str | None = None,
        include_all: bool = False,
    ) -> list[Memory]:
        """Unranked filter over the full set, in store order."""
        memory_type = parse_optional_enum(MemoryType, memory_type, "type")
        status = parse_optional_enum(MemoryStatus, status, "status")
        if memory_type is not None:
            candidates = self.entities.list_by_field(EntityKind.MEMORY, "type", memory_type)
        else:
            candidates = self.entities.list_all(EntityKind.MEMORY)
        return [
            memory
            for memory in candidates
            if (memory_type is None or memory.type is memory_type)
            and is_visible(memory, status, include_all)
        ]

    def reminders(self) -> list[Memory]:
        """Active rules, used for quick reality-check output."""
        return self.list_memories(memory_type=MemoryType.RULE, status=MemoryStatus.ACTIVE)

    def get(self, memory_id: str) -> Memory:
        """Explicit lookup; dimmed memories are always retrievable this way."""
        memory = self.entities.get(EntityKind.MEMORY, memory_id)
        if memory is None:
            raise NotFoundError("memory", memory_id)
        return memory

    def search_traces(self, query: str, limit: int | None = None) -> list[ChunkResult]:
        return self._search_chunks(EntityKind.TRACE, query, limit)

    def search_references(self, query: str, limit: int | None = None) -> list[ChunkResult]:
        return self._search_chunks(EntityKind.REFERENCE, query, limit)

    def _search_chunks(self, kind: EntityKind, query: str, limit: int | None) -> list[ChunkResult]:
        """Best chunk per owner, ranked by similarity."""
        _check_query(query)
        limit = self._limit(limit)
        vector = self.embedder.embed(query)
        hits = self.entities.vector_search(kind, vector, limit * self.overfetch)
        owners = {entity.id: entity for entity in self.entities.list_all(kind)}

        best: dict[str, VectorHit] = {}
        for hit in hits:
            if hit.owner_id not in owners:
                continue
            current = best.get(hit.owner_id)
            if current is None or hit.similarity > current.similarity:
                best[hit.owner_id] = hit

        results = [
            ChunkResult(
                entity=owners[owner_id],
                score=hit.similarity,
                chunk_index=hit.chunk_index,
                chunk_text=hit.chunk_text,
            )
            for owner_id, hit in best.items()
        ]
        results = sorted(results, key=lambda r: r.score, reverse=True)
        return results[:limit]
