"""Models for the entities memories link to."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from memory.types.enums import ContextType, ObjectType, ReferenceType, TraceType
from memory.types.mem import utc_now


class ObjectInput(BaseModel):
    """Typed external referent a memory can be about."""

    type: ObjectType
    name: str = Field(min_length=1, max_length=200)
    reference: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=2000)


class ObjectEntity(ObjectInput):
    id: str


class ContextInput(BaseModel):
    """Scope a memory applies in."""

    type: ContextType
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class Context(ContextInput):
    id: str


class AgentInput(BaseModel):
    """AI agent instance that can propose memories."""

    name: str = Field(min_length=1, max_length=200)
    model: str = Field(min_length=1, max_length=200)
    function: str | None = Field(default=None, max_length=2000)


class Agent(AgentInput):
    id: str


class TraceInput(BaseModel):
    """Append-only event record used as evidence."""

    type: TraceType
    timestamp: datetime = Field(default_factory=utc_now)
    summary: str = Field(min_length=1, max_length=2000)
    payload: str | None = None


class Trace(TraceInput):
    id: str


class ReferenceInput(BaseModel):
    """External source a memory can cite."""

    type: ReferenceType
    title: str = Field(min_length=1, max_length=500)
    uri: str | None = Field(default=None, max_length=2000)
    retrieved_at: datetime = Field(default_factory=utc_now)
    snippet: str | None = Field(default=None, max_length=2000)
    full_text: str | None = None


class Reference(ReferenceInput):
    id: str
