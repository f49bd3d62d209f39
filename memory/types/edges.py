"""Typed, directed relationships between entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from memory.types.enums import EntityKind, LenientEnum


class EdgeKind(LenientEnum):
    ABOUT = "about"
    ABOUT_REF = "about_ref"
    IN_CONTEXT = "in_context"
    PROPOSED_BY = "proposed_by"
    VERSION_OF = "version_of"
    HAS_EVIDENCE = "has_evidence"
    HAS_EVIDENCE_REF = "has_evidence_ref"
    SUPERSEDES = "supersedes"
    CONTRADICTS = "contradicts"
    DEPENDS_ON = "depends_on"
    CAUSAL = "causal"
    HAS_CAUSE = "has_cause"
    HAS_EFFECT = "has_effect"
    RELATED = "related"
    PART_OF = "part_of"


class Direction(LenientEnum):
    OUT = "out"
    IN = "in"


@dataclass(frozen=True)
class EdgeSpec:
    """Endpoint kinds and required attributes of one edge kind."""

    rpc: str
    source: EntityKind
    target: EntityKind
    attrs: tuple[str, ...] = ()
    symmetric: bool = False


_M = EntityKind.MEMORY

EDGE_SPECS: dict[EdgeKind, EdgeSpec] = {
    EdgeKind.ABOUT: EdgeSpec("About", _M, EntityKind.OBJECT),
    EdgeKind.ABOUT_REF: EdgeSpec("AboutRef", _M, EntityKind.REFERENCE),
    EdgeKind.IN_CONTEXT: EdgeSpec("InContext", _M, EntityKind.CONTEXT),
    EdgeKind.PROPOSED_BY: EdgeSpec("ProposedBy", _M, EntityKind.AGENT),
    EdgeKind.VERSION_OF: EdgeSpec("VersionOf", _M, EntityKind.OBJECT),
    EdgeKind.HAS_EVIDENCE: EdgeSpec("HasEvidence", _M, EntityKind.TRACE),
    EdgeKind.HAS_EVIDENCE_REF: EdgeSpec("HasEvidenceRef", _M, EntityKind.REFERENCE),
    EdgeKind.SUPERSEDES: EdgeSpec("Supersedes", _M, _M, attrs=("reason",)),
    EdgeKind.CONTRADICTS: EdgeSpec("Contradicts", _M, _M, symmetric=True),
    EdgeKind.DEPENDS_ON: EdgeSpec("DependsOn", _M, _M),
    EdgeKind.CAUSAL: EdgeSpec("Causal", _M, _M, attrs=("description",)),
    EdgeKind.HAS_CAUSE: EdgeSpec("HasCause", _M, _M),
    EdgeKind.HAS_EFFECT: EdgeSpec("HasEffect", _M, _M),
    EdgeKind.RELATED: EdgeSpec("Related", _M, _M, symmetric=True),
    EdgeKind.PART_OF: EdgeSpec("PartOf", EntityKind.OBJECT, EntityKind.CONTEXT),
}

EDGES_BY_RPC: dict[str, EdgeSpec] = {spec.rpc: spec for spec in EDGE_SPECS.values()}


@dataclass
class Edge:
    """An edge as created through the store adapter."""

    kind: EdgeKind
    from_id: str
    to_id: str
    attrs: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "attrs": dict(self.attrs),
        }
