"""Typed entity models and closed value sets."""

from memory.types.edges import EDGE_SPECS, Direction, Edge, EdgeKind, EdgeSpec
from memory.types.entities import (
    Agent,
    AgentInput,
    Context,
    ContextInput,
    ObjectEntity,
    ObjectInput,
    Reference,
    ReferenceInput,
    Trace,
    TraceInput,
)
from memory.types.enums import (
    Confidence,
    ContextType,
    Contributor,
    EntityKind,
    MemoryState,
    MemoryStatus,
    MemoryType,
    ObjectType,
    ReferenceType,
    TraceType,
)
from memory.types.mem import Memory, MemoryInput, utc_now

__all__ = [
    "EDGE_SPECS",
    "Agent",
    "AgentInput",
    "Confidence",
    "Context",
    "ContextInput",
    "ContextType",
    "Contributor",
    "Direction",
    "Edge",
    "EdgeKind",
    "EdgeSpec",
    "EntityKind",
    "Memory",
    "MemoryInput",
    "MemoryState",
    "MemoryStatus",
    "MemoryType",
    "ObjectEntity",
    "ObjectInput",
    "ObjectType",
    "Reference",
    "ReferenceInput",
    "ReferenceType",
    "Trace",
    "TraceInput",
    "utc_now",
]
