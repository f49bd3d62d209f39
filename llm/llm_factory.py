"""Provider factory for embedding and classification collaborators."""

from __future__ import annotations

from typing import Any

from llm.base_llm import BaseClassifier, BaseEmbedder
from llm.providers.mock_provider import MockClassifier, MockEmbedder
from llm.providers.openai_provider import OpenAIClassifier, OpenAIEmbedder

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def _active(config: dict[str, Any], section: str) -> tuple[str, dict[str, Any]]:
    models_cfg = config.get("models", {}).get(section, {})
    active = models_cfg.get("active_provider", "mock")
    active_cfg = dict(models_cfg.get("providers", {}).get(active, {}))
    return active_cfg.get("type", active), active_cfg


def build_embedder(config: dict[str, Any]) -> BaseEmbedder:
    """Build the embedding provider from configuration, defaulting safely to mock."""
    provider_type, cfg = _active(config, "embedding")
    timeout = float(cfg.get("timeout_seconds", 30.0))
    if provider_type == "openai":
        return OpenAIEmbedder(
            model=cfg.get("model", "text-embedding-3-small"),
            timeout=timeout,
            base_url=cfg.get("base_url"),
        )
    return MockEmbedder(dimensions=int(cfg.get("dimensions", 64)))


def build_classifier(config: dict[str, Any]) -> BaseClassifier:
    """Build the classification provider from configuration, defaulting safely to mock."""
    provider_type, cfg = _active(config, "classifier")
    timeout = float(cfg.get("timeout_seconds", 30.0))
    if provider_type == "openai":
        return OpenAIClassifier(
            model=cfg.get("model", "gpt-4o-mini"),
            timeout=timeout,
            base_url=cfg.get("base_url"),
        )
    if provider_type == "groq":
        return OpenAIClassifier(
            model=cfg.get("model", "llama-3.3-70b-versatile"),
            timeout=timeout,
            api_key_env="GROQ_API_KEY",
            base_url=cfg.get("base_url", GROQ_BASE_URL),
        )
    return MockClassifier()
