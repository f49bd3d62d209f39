"""Closed value sets for entities and fields."""

from __future__ import annotations

import re
from enum import Enum


def _canonical(value: str) -> str:
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", value.strip())
    return re.sub(r"[\s\-]+", "_", spaced).lower()


class LenientEnum(str, Enum):
    """String enum that accepts any casing or separator style on input."""

    @classmethod
    def _missing_(cls, value: object) -> LenientEnum | None:
        if not isinstance(value, str):
            return None
        key = _canonical(value)
        for member in cls:
            if member.value == key or member.value.replace("_", "") == key.replace("_", ""):
                return member
        return None

    @classmethod
    def choices(cls) -> list[str]:
        return [member.value for member in cls]

    def __str__(self) -> str:
        return self.value


class MemoryType(LenientEnum):
    DECISION = "decision"
    PROBLEM = "problem"
    RULE = "rule"
    BEST_PRACTICE = "best_practice"
    CONVENTION = "convention"
    ANTI_PATTERN = "anti_pattern"
    TRAIT = "trait"
    PREFERENCE = "preference"
    CAUSAL = "causal"
    VERSION = "version"


class MemoryState(LenientEnum):
    FACT = "fact"
    ASSUMPTION = "assumption"


class Confidence(LenientEnum):
    LOW = "low"
    MED = "med"
    HIGH = "high"


class MemoryStatus(LenientEnum):
    ACTIVE = "active"
    SUPERSEDED = "superseded"
    CONTESTED = "contested"
    DIMMED = "dimmed"
    ARCHIVED = "archived"


class Contributor(LenientEnum):
    HUMAN = "human"
    AGENT = "agent"


class ObjectType(LenientEnum):
    LANGUAGE = "language"
    DATABASE = "database"
    FRAMEWORK = "framework"
    LIB = "lib"
    TOOL = "tool"
    API = "api"
    MODEL = "model"
    COMPONENT = "component"
    SERVICE = "service"
    FONT = "font"
    STACK = "stack"
    TEMPLATE = "template"


class ContextType(LenientEnum):
    ORG = "org"
    PROJECT = "project"
    DOMAIN = "domain"
    STAGE = "stage"


class TraceType(LenientEnum):
    SESSION_LOG = "session_log"
    EVENT = "event"
    SNAPSHOT = "snapshot"
    CHECK_RESULT = "check_result"


class ReferenceType(LenientEnum):
    URL = "url"
    DOC = "doc"
    COMMIT = "commit"
    PR = "pr"
    ADR = "adr"
    TICKET = "ticket"
    MEETING_NOTE = "meeting_note"


class EntityKind(LenientEnum):
    MEMORY = "memory"
    OBJECT = "object"
    CONTEXT = "context"
    AGENT = "agent"
    TRACE = "trace"
    REFERENCE = "reference"
