"""Deterministic local providers for offline usage and tests."""

from __future__ import annotations

import hashlib
import math
import re

from llm.base_llm import BaseClassifier, BaseEmbedder, Classification
from memory.types import Confidence, MemoryState, MemoryType


def _tokenize(text: str) -> list[str]:
    return [token for token in re.split(r"[^a-zA-Z0-9]+", text.lower()) if token]


class MockEmbedder(BaseEmbedder):
    """Feature-hashing bag-of-words embedder; identical text gives identical vectors."""

    def __init__(self, dimensions: int = 64) -> None:
        self.dimensions = dimensions

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for token in _tokenize(text):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            index = int.from_bytes(digest[:4], "big") % self.dimensions
            vector[index] += 1.0 if digest[4] % 2 == 0 else -1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(text) for text in texts]


class MockClassifier(BaseClassifier):
    """Keyword rules standing in for an LLM classifier."""

    _RULES: tuple[tuple[str, MemoryType], ...] = (
        (r"\b(always|never|must|required?)\b", MemoryType.RULE),
        (r"\b(avoid|don'?t|do not)\b", MemoryType.ANTI_PATTERN),
        (r"\b(because|caused|leads? to|results? in)\b", MemoryType.CAUSAL),
        (r"\b(prefer|prefers|like|likes|love|hate)\b", MemoryType.PREFERENCE),
        (r"\b(decided|chose|choose|we use|switched to|adopt)\b", MemoryType.DECISION),
        (r"\b(bug|issue|fails?|broken|error)\b", MemoryType.PROBLEM),
        (r"\bv?\d+\.\d+(\.\d+)?\b", MemoryType.VERSION),
        (r"\b(should|best practice|recommended)\b", MemoryType.BEST_PRACTICE),
    )
    _HEDGES = re.compile(r"\b(maybe|probably|might|likely|i think|seems?)\b", re.IGNORECASE)
    _CHATTER = {"hi", "hello", "hey", "thanks", "thank", "ok", "okay", "bye", "lol"}

    def classify(self, text: str) -> Classification:
        tokens = _tokenize(text)
        worthy = len(tokens) >= 3 and not set(tokens) <= self._CHATTER
        mem_type = MemoryType.CONVENTION
        for pattern, candidate in self._RULES:
            if re.search(pattern, text, flags=re.IGNORECASE):
                mem_type = candidate
                break
        if self._HEDGES.search(text):
            return Classification(
                type=mem_type,
                state=MemoryState.ASSUMPTION,
                confidence=Confidence.MED,
                worthy=worthy,
            )
        return Classification(type=mem_type, state=MemoryState.FACT, worthy=worthy)
