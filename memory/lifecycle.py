"""Memory status state machine over an insert/delete-only store.

Every status change deletes the old record and inserts a copy that differs
only in the changed field. The copy keeps its id when the backend honors
caller-supplied ids; otherwise it gets a new id, edges pointing at the old
id dangle, and the returned ``StatusChange`` says so.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from llm.base_llm import BaseEmbedder
from memory.entity_store import EntityStore
from memory.errors import HypermemError, NotFoundError, PartialTransitionError, ValidationError
from memory.text_prep import embedding_text
from memory.types import Edge, EdgeKind, EntityKind, Memory, MemoryInput, MemoryStatus, utc_now
from memory.validation import parse_enum

logger = logging.getLogger("hypermem.lifecycle")


@dataclass
class StatusChange:
    """Outcome of one replace operation."""

    memory: Memory
    previous_id: str
    previous_status: MemoryStatus
    changed: bool = True
    relinked_edges: list[Edge] = field(default_factory=list)

    @property
    def id_preserved(self) -> bool:
        return self.memory.id == self.previous_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "memory": self.memory.model_dump(mode="json"),
            "previous_id": self.previous_id,
            "previous_status": self.previous_status.value,
            "id_preserved": self.id_preserved,
            "changed": self.changed,
            "relinked_edges": [edge.to_dict() for edge in self.relinked_edges],
        }


class StatusLifecycle:
    """Applies status transitions and their mandated side effects."""

    def __init__(self, entities: EntityStore, embedder: BaseEmbedder | None = None) -> None:
        self.entities = entities
        self.embedder = embedder

    def transition(self, memory_id: str, status: MemoryStatus | str) -> StatusChange:
        """Move a memory to ``status``; any state may move to any other."""
        return self._replace(memory_id, status=parse_enum(MemoryStatus, status, "status"))

    def dim(self, memory_id: str) -> StatusChange:
        return self.transition(memory_id, MemoryStatus.DIMMED)

    def undim(self, memory_id: str) -> StatusChange:
        return self.transition(memory_id, MemoryStatus.ACTIVE)

    def archive(self, memory_id: str) -> StatusChange:
        return self.transition(memory_id, MemoryStatus.ARCHIVED)

    def activate(self, memory_id: str) -> StatusChange:
        return self.transition(memory_id, MemoryStatus.ACTIVE)

    def validate(self, memory_id: str, at: datetime | None = None) -> StatusChange:
        """Stamp ``last_validated_at``; uses the same replace mechanics."""
        return self._replace(memory_id, last_validated_at=at or utc_now())

    def forget(self, memory_id: str) -> Memory:
        """Hard delete; edges and embeddings pointing at the memory are left dangling."""
        memory = self.entities.require(EntityKind.MEMORY, memory_id)
        self.entities.delete(EntityKind.MEMORY, memory_id, must_exist=False)
        logger.info("memory %s forgotten", memory_id)
        return memory

    def supersede(self, new_id: str, old_id: str, reason: str) -> StatusChange:
        """Link ``new_id`` SUPERSEDES ``old_id`` and mark the old memory superseded."""
        if not reason or not reason.strip():
            raise ValidationError("a reason is required to supersede a memory", fields=["reason"])
        self.entities.create_edge(EdgeKind.SUPERSEDES, new_id, old_id, reason=reason)
        change = self.transition(old_id, MemoryStatus.SUPERSEDED)
        if not change.id_preserved:
            change.relinked_edges.append(
                self.entities.create_edge(EdgeKind.SUPERSEDES, new_id, change.memory.id, reason=reason)
            )
        return change

    def contradict(self, first_id: str, second_id: str) -> StatusChange:
        """Link the pair as contradicting and mark only ``second_id`` contested."""
        self.entities.create_edge(EdgeKind.CONTRADICTS, first_id, second_id)
        change = self.transition(second_id, MemoryStatus.CONTESTED)
        if not change.id_preserved:
            change.relinked_edges.append(
                self.entities.create_edge(EdgeKind.CONTRADICTS, first_id, change.memory.id)
            )
        return change

    def _replace(self, memory_id: str, **changes: Any) -> StatusChange:
        existing = self.entities.get(EntityKind.MEMORY, memory_id)
        if existing is None:
            raise NotFoundError("memory", memory_id)
        if all(getattr(existing, key) == value for key, value in changes.items()):
            return StatusChange(
                memory=existing,
                previous_id=existing.id,
                previous_status=existing.status,
                changed=False,
            )

        data = existing.model_dump(exclude={"id"})
        data.update(changes)
        replacement = MemoryInput.model_validate(data)

        self.entities.delete(EntityKind.MEMORY, memory_id, must_exist=False)
        try:
            created = self.entities.create(EntityKind.MEMORY, replacement, entity_id=memory_id)
        except HypermemError as exc:
            logger.error("memory %s deleted but not re-inserted: %s", memory_id, exc)
            raise PartialTransitionError(memory_id, existing.model_dump(mode="json"), str(exc)) from exc

        change = StatusChange(memory=created, previous_id=memory_id, previous_status=existing.status)
        self.entities.audit(
            "replace",
            EntityKind.MEMORY.value,
            [memory_id, created.id],
            {key: str(value) for key, value in changes.items()},
        )
        logger.info(
            "memory %s: %s -> %s (id %s)",
            memory_id,
            existing.status.value,
            created.status.value,
            "kept" if change.id_preserved else f"now {created.id}",
        )
        if not change.id_preserved:
            logger.warning(
                "memory %s re-inserted as %s; edges pointing at the old id now dangle",
                memory_id,
                created.id,
            )
            self._reindex(created)
        return change

    def _reindex(self, memory: Memory) -> None:
        if self.embedder is None:
            return
        vector = self.embedder.embed(embedding_text(memory.statement, memory.notes))
        self.entities.add_embedding(
            EntityKind.MEMORY,
            memory.id,
            vector,
            status=memory.status.value,
            created_at=memory.created_at.isoformat(),
        )
