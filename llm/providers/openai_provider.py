"""OpenAI-compatible embedding and classification providers."""

from __future__ import annotations

import json
import os
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from llm.base_llm import BaseClassifier, BaseEmbedder, Classification
from memory.errors import OperationTimeoutError, ProviderError
from memory.types import MemoryType

CLASSIFY_PROMPT = """Classify this memory content.

Types: decision (a choice that was made), problem (known issue or bug),
rule (hard rule that must be followed), best_practice (recommended approach),
convention (coding or process convention), anti_pattern (pattern to avoid),
trait (personal characteristic or style), preference (preference or opinion),
causal (cause-effect relationship), version (a version of a tool or model).

State: fact (verified, in effect) or assumption (not fully verified).
Confidence: low, med or high, only when state is assumption.
worthy: true when the content holds actionable, persistent information.

Answer with a JSON object with keys: type, state, confidence, worthy."""


class _OpenAIClientMixin:
    """Lazily builds the OpenAI client; credentials are read at call time."""

    model: str
    timeout: float
    api_key_env: str
    base_url: str | None

    def _client(self) -> Any:
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ProviderError(f"{self.api_key_env} not set; configure credentials or use the mock provider")
        try:
            from openai import OpenAI
        except ImportError as exc:
            raise ProviderError("`openai` package missing. Install with: pip install openai") from exc
        return OpenAI(api_key=api_key, base_url=self.base_url, timeout=self.timeout)

    def _wrap(self, exc: Exception) -> Exception:
        import openai

        if isinstance(exc, openai.APITimeoutError):
            return OperationTimeoutError(f"{self.model} did not answer within {self.timeout}s")
        return ProviderError(f"{self.model} call failed: {exc}")


class OpenAIEmbedder(_OpenAIClientMixin, BaseEmbedder):
    """Embeddings endpoint adapter."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        timeout: float = 30.0,
        api_key_env: str = "OPENAI_API_KEY",
        base_url: str | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.api_key_env = api_key_env
        self.base_url = base_url

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        client = self._client()
        import openai

        try:
            response = client.embeddings.create(model=self.model, input=list(texts))
        except openai.OpenAIError as exc:
            raise self._wrap(exc) from exc
        return [list(item.embedding) for item in response.data]


class OpenAIClassifier(_OpenAIClientMixin, BaseClassifier):
    """Chat completions adapter returning a JSON classification."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        api_key_env: str = "OPENAI_API_KEY",
        base_url: str | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.api_key_env = api_key_env
        self.base_url = base_url

    def classify(self, text: str) -> Classification:
        client = self._client()
        import openai

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": CLASSIFY_PROMPT},
                    {"role": "user", "content": f'Content: "{text}"'},
                ],
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise self._wrap(exc) from exc
        content = response.choices[0].message.content or ""
        return parse_classification(content)


def parse_classification(content: str) -> Classification:
    """Parse a classifier JSON answer; confidence is dropped for facts."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ProviderError(f"classifier returned non-JSON output: {content[:80]!r}") from exc
    if not isinstance(data, dict):
        raise ProviderError("classifier returned a non-object answer")
    data.setdefault("type", MemoryType.CONVENTION.value)
    if str(data.get("state", "")).lower() != "assumption" or not data.get("confidence"):
        data["confidence"] = None
    try:
        return Classification.model_validate(data)
    except PydanticValidationError as exc:
        raise ProviderError(f"classifier answer failed validation: {exc.error_count()} issue(s)") from exc
