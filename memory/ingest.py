"""Write pipeline: classify, validate, embed and persist one memory."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from llm.base_llm import BaseClassifier, BaseEmbedder
from memory.entity_store import EntityStore
from memory.errors import HypermemError, ProviderError, ValidationError
from memory.text_prep import embedding_text
from memory.types import (
    Confidence,
    Contributor,
    EdgeKind,
    EntityKind,
    Memory,
    MemoryInput,
    MemoryState,
    MemoryType,
)
from memory.validation import validate_model

logger = logging.getLogger("hypermem.ingest")


class WriteRequest(BaseModel):
    """Raw write input; only ``statement`` is required."""

    statement: str
    type: MemoryType | None = None
    state: MemoryState | None = None
    confidence: Confidence | None = None
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    contributors: list[Contributor] = Field(default_factory=list)
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    objects: list[str] = Field(default_factory=list)
    contexts: list[str] = Field(default_factory=list)
    proposed_by: str | None = None


@dataclass
class LinkOutcome:
    """Result of resolving one named link target."""

    edge: EdgeKind
    name: str
    target_id: str | None = None

    @property
    def resolved(self) -> bool:
        return self.target_id is not None

    def to_dict(self) -> dict[str, Any]:
        return {"edge": self.edge.value, "name": self.name, "target_id": self.target_id}


@dataclass
class WriteResult:
    """Created memory, or a skip with its reason."""

    memory: Memory | None = None
    skipped: bool = False
    reason: str = ""
    links: list[LinkOutcome] = field(default_factory=list)

    @classmethod
    def skip(cls, reason: str) -> WriteResult:
        return cls(skipped=True, reason=reason)

    @property
    def unresolved(self) -> list[LinkOutcome]:
        return [link for link in self.links if not link.resolved]

    def to_dict(self) -> dict[str, Any]:
        return {
            "skipped": self.skipped,
            "reason": self.reason,
            "memory": self.memory.model_dump(mode="json") if self.memory else None,
            "links": [link.to_dict() for link in self.links if link.resolved],
            "unresolved": [link.to_dict() for link in self.unresolved],
        }


# (edge, target kind, request attribute)
_NAMED_LINKS: tuple[tuple[EdgeKind, EntityKind, str], ...] = (
    (EdgeKind.ABOUT, EntityKind.OBJECT, "objects"),
    (EdgeKind.IN_CONTEXT, EntityKind.CONTEXT, "contexts"),
)


class WritePipeline:
    """Turns a raw statement into a persisted, embedded memory."""

    def __init__(
        self,
        entities: EntityStore,
        embedder: BaseEmbedder,
        classifier: BaseClassifier | None = None,
    ) -> None:
        self.entities = entities
        self.embedder = embedder
        self.classifier = classifier

    def resolve(self, request: WriteRequest) -> MemoryInput | WriteResult:
        """Decide type/state/confidence and validate; a skip returns a WriteResult."""
        if request.type is not None:
            memory_type = request.type
            state = request.state or MemoryState.FACT
            confidence = request.confidence
        else:
            if self.classifier is None:
                raise ValidationError(
                    "type is required when no classifier is configured", fields=["type"]
                )
            verdict = self.classifier.classify(request.statement)
            if not verdict.worthy:
                logger.info("statement skipped as not memory-worthy")
                return WriteResult.skip("not memory-worthy")
            memory_type = verdict.type
            state = request.state or verdict.state
            confidence = request.confidence or verdict.confidence
            if state is MemoryState.FACT:
                confidence = None
            elif confidence is None:
                raise ProviderError("classifier marked the statement an assumption without a confidence")

        payload = request.model_dump(exclude={"objects", "contexts", "proposed_by"})
        payload.update(type=memory_type, state=state, confidence=confidence)
        return validate_model(MemoryInput, payload, context="memory")

    def run(self, request: WriteRequest | dict[str, Any]) -> WriteResult:
        if not isinstance(request, WriteRequest):
            request = validate_model(WriteRequest, request, context="write request")

        resolved = self.resolve(request)
        if isinstance(resolved, WriteResult):
            return resolved

        vector = self.embedder.embed(embedding_text(resolved.statement, resolved.notes))
        memory = self.entities.create(EntityKind.MEMORY, resolved)
        try:
            self.entities.add_embedding(
                EntityKind.MEMORY,
                memory.id,
                vector,
                status=memory.status.value,
                created_at=memory.created_at.isoformat(),
            )
        except HypermemError:
            logger.error("embedding for memory %s failed; removing the record", memory.id)
            self.entities.delete(EntityKind.MEMORY, memory.id, must_exist=False)
            raise
        logger.info("memory %s created (%s)", memory.id, memory.type.value)

        result = WriteResult(memory=memory)
        for edge, kind, attr in _NAMED_LINKS:
            for name in getattr(request, attr):
                result.links.append(self._link_by_name(memory.id, edge, kind, name))
        if request.proposed_by:
            result.links.append(
                self._link_by_name(memory.id, EdgeKind.PROPOSED_BY, EntityKind.AGENT, request.proposed_by)
            )
        for link in result.unresolved:
            logger.warning("no %s named %r; link skipped", link.edge.value, link.name)
        return result

    def _link_by_name(self, memory_id: str, edge: EdgeKind, kind: EntityKind, name: str) -> LinkOutcome:
        target = self.entities.get_by_name(kind, name)
        if target is None:
            return LinkOutcome(edge=edge, name=name)
        self.entities.create_edge(edge, memory_id, target.id)
        return LinkOutcome(edge=edge, name=name, target_id=target.id)
