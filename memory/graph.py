"""Read-only one-hop traversals over typed edges."""

from __future__ import annotations

from typing import Any

from memory.entity_store import Entity, EntityStore
from memory.types import (
    Agent,
    Context,
    Direction,
    EdgeKind,
    EntityKind,
    Memory,
    MemoryType,
    ObjectEntity,
    Reference,
    Trace,
)

# neighborhood section name -> (edge, direction)
MEMORY_RELATIONS: dict[str, tuple[EdgeKind, Direction]] = {
    "objects": (EdgeKind.ABOUT, Direction.OUT),
    "contexts": (EdgeKind.IN_CONTEXT, Direction.OUT),
    "agents": (EdgeKind.PROPOSED_BY, Direction.OUT),
    "versions_of": (EdgeKind.VERSION_OF, Direction.OUT),
    "evidence_traces": (EdgeKind.HAS_EVIDENCE, Direction.OUT),
    "evidence_references": (EdgeKind.HAS_EVIDENCE_REF, Direction.OUT),
    "about_references": (EdgeKind.ABOUT_REF, Direction.OUT),
    "supersedes": (EdgeKind.SUPERSEDES, Direction.OUT),
    "superseded_by": (EdgeKind.SUPERSEDES, Direction.IN),
    "dependencies": (EdgeKind.DEPENDS_ON, Direction.OUT),
    "dependents": (EdgeKind.DEPENDS_ON, Direction.IN),
    "causes": (EdgeKind.HAS_CAUSE, Direction.OUT),
    "effects": (EdgeKind.HAS_EFFECT, Direction.OUT),
    "causal_out": (EdgeKind.CAUSAL, Direction.OUT),
    "causal_in": (EdgeKind.CAUSAL, Direction.IN),
}


def _dedupe(entities: list[Any]) -> list[Any]:
    seen: set[str] = set()
    unique = []
    for entity in entities:
        if entity.id not in seen:
            seen.add(entity.id)
            unique.append(entity)
    return unique


class GraphNavigator:
    """Resolves related entities of a memory or object.

    Every accessor is a single traversal; empty results are empty lists.
    """

    def __init__(self, entities: EntityStore) -> None:
        self.entities = entities

    def _hop(self, edge: EdgeKind, entity_id: str, direction: Direction = Direction.OUT) -> list[Entity]:
        return self.entities.traverse(edge, entity_id, direction)

    def _both(self, edge: EdgeKind, entity_id: str) -> list[Entity]:
        out = self._hop(edge, entity_id, Direction.OUT)
        incoming = self._hop(edge, entity_id, Direction.IN)
        return [e for e in _dedupe(out + incoming) if e.id != entity_id]

    def objects(self, memory_id: str) -> list[ObjectEntity]:
        return self._hop(EdgeKind.ABOUT, memory_id)

    def contexts(self, memory_id: str) -> list[Context]:
        return self._hop(EdgeKind.IN_CONTEXT, memory_id)

    def agents(self, memory_id: str) -> list[Agent]:
        return self._hop(EdgeKind.PROPOSED_BY, memory_id)

    def evidence_traces(self, memory_id: str) -> list[Trace]:
        return self._hop(EdgeKind.HAS_EVIDENCE, memory_id)

    def evidence_references(self, memory_id: str) -> list[Reference]:
        return self._hop(EdgeKind.HAS_EVIDENCE_REF, memory_id)

    def about_references(self, memory_id: str) -> list[Reference]:
        return self._hop(EdgeKind.ABOUT_REF, memory_id)

    def supersedes(self, memory_id: str) -> list[Memory]:
        """Memories this one replaced."""
        return self._hop(EdgeKind.SUPERSEDES, memory_id, Direction.OUT)

    def superseded_by(self, memory_id: str) -> list[Memory]:
        """Memories that replaced this one."""
        return self._hop(EdgeKind.SUPERSEDES, memory_id, Direction.IN)

    def contradictions(self, memory_id: str) -> list[Memory]:
        """Contradicting memories regardless of which side created the edge."""
        return self._both(EdgeKind.CONTRADICTS, memory_id)

    def related(self, memory_id: str) -> list[Memory]:
        return self._both(EdgeKind.RELATED, memory_id)

    def dependencies(self, memory_id: str) -> list[Memory]:
        return self._hop(EdgeKind.DEPENDS_ON, memory_id, Direction.OUT)

    def dependents(self, memory_id: str) -> list[Memory]:
        return self._hop(EdgeKind.DEPENDS_ON, memory_id, Direction.IN)

    def causes(self, memory_id: str) -> list[Memory]:
        return self._hop(EdgeKind.HAS_CAUSE, memory_id)

    def effects(self, memory_id: str) -> list[Memory]:
        return self._hop(EdgeKind.HAS_EFFECT, memory_id)

    def object_versions(self, object_id: str) -> list[Memory]:
        """Version-type memories pointing at an object through VersionOf."""
        return [
            memory
            for memory in self._hop(EdgeKind.VERSION_OF, object_id, Direction.IN)
            if memory.type is MemoryType.VERSION
        ]

    def object_memories(self, object_id: str) -> list[Memory]:
        """Memories that are About an object."""
        return self._hop(EdgeKind.ABOUT, object_id, Direction.IN)

    def object_contexts(self, object_id: str) -> list[Context]:
        return self._hop(EdgeKind.PART_OF, object_id, Direction.OUT)

    def context_objects(self, context_id: str) -> list[ObjectEntity]:
        return self._hop(EdgeKind.PART_OF, context_id, Direction.IN)

    def neighborhood(self, memory_id: str) -> dict[str, list[Entity]]:
        """Every one-hop relation of a memory, keyed by relation name."""
        self.entities.require(EntityKind.MEMORY, memory_id)
        sections: dict[str, list[Entity]] = {
            name: self._hop(edge, memory_id, direction)
            for name, (edge, direction) in MEMORY_RELATIONS.items()
        }
        sections["contradictions"] = self.contradictions(memory_id)
        sections["related"] = self.related(memory_id)
        return sections
