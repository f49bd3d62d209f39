"""Embedding and classification provider interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from memory.types import Confidence, MemoryState, MemoryType


class Classification(BaseModel):
    """Classifier verdict for a raw statement."""

    type: MemoryType
    state: MemoryState = MemoryState.FACT
    confidence: Confidence | None = None
    worthy: bool = True


class BaseEmbedder(ABC):
    """Abstract text embedding provider with a fixed dimensionality."""

    @abstractmethod
    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per input text."""

    def embed(self, text: str) -> list[float]:
        """Return the vector for a single text."""
        return self.embed_batch([text])[0]


class BaseClassifier(ABC):
    """Abstract memory classification provider."""

    @abstractmethod
    def classify(self, text: str) -> Classification:
        """Return type, state, confidence and memory-worthiness for ``text``."""
