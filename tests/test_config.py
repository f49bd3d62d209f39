"""Configuration, logging bootstrap and provider factory tests."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

import pytest

from core.config import DEFAULT_CONFIG, ensure_runtime_dirs, load_effective_config, load_yaml, merge_dicts
from core.logging_setup import configure_logging
from core.orchestrator import Orchestrator, build_backend
from llm.llm_factory import build_classifier, build_embedder
from llm.providers.mock_provider import MockClassifier, MockEmbedder
from llm.providers.openai_provider import OpenAIClassifier, parse_classification
from memory.errors import ProviderError, ValidationError
from memory.stores.helix_store import HelixStore
from memory.stores.local_store import LocalStore
from memory.types import Confidence, MemoryState, MemoryType


def write_config(root: Path, text: str) -> None:
    (root / "config").mkdir(parents=True, exist_ok=True)
    (root / "config" / "default.yaml").write_text(text, encoding="utf-8")


def test_defaults_apply_without_config_file(tmp_path: Path) -> None:
    config = load_effective_config(tmp_path, environ={})

    assert config["store"]["backend"] == "local"
    assert config["models"]["embedding"]["active_provider"] == "mock"
    assert config == DEFAULT_CONFIG


def test_yaml_merges_over_defaults_and_env_wins(tmp_path: Path) -> None:
    write_config(tmp_path, "store:\n  backend: helix\n  timeout_seconds: 5\nlogging:\n  level: INFO\n")

    config = load_effective_config(tmp_path, environ={"HELIX_URL": "http://helix:6969", "LOG_LEVEL": "DEBUG"})

    assert config["store"]["backend"] == "helix"
    assert config["store"]["timeout_seconds"] == 5
    assert config["store"]["url"] == "http://helix:6969"
    assert config["store"]["db_path"] == DEFAULT_CONFIG["store"]["db_path"]
    assert config["logging"]["level"] == "DEBUG"
    assert DEFAULT_CONFIG["store"]["backend"] == "local"


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    write_config(tmp_path, "- just\n- a list\n")

    with pytest.raises(ValueError):
        load_yaml(tmp_path / "config" / "default.yaml")


def test_merge_dicts_is_recursive() -> None:
    merged = merge_dicts({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"c": 5}, "e": 6})

    assert merged == {"a": {"b": 1, "c": 5}, "d": 3, "e": 6}


def test_runtime_dirs_are_created(tmp_path: Path) -> None:
    paths = ensure_runtime_dirs(tmp_path, {"store": {"db_path": "x/y.db"}, "paths": {"audit_log_path": "l/a.jsonl"}})

    assert paths["db_path"] == (tmp_path / "x" / "y.db").resolve()
    assert paths["db_path"].parent.is_dir()
    assert paths["audit_log_path"].parent.is_dir()


def test_backend_selection(tmp_path: Path) -> None:
    local = build_backend({"store": {"backend": "local"}}, tmp_path / "mem.db")
    helix = build_backend({"store": {"backend": "helix", "url": "http://h:1", "timeout_seconds": 2}}, tmp_path / "x.db")

    assert isinstance(local, LocalStore) and local.supports_stable_ids
    assert isinstance(helix, HelixStore) and not helix.supports_stable_ids
    assert helix.timeout == 2.0
    local.close()
    helix.close()
    with pytest.raises(ValidationError):
        build_backend({"store": {"backend": "redis"}}, tmp_path / "mem.db")


def test_orchestrator_builds_runtime_under_root(tmp_path: Path) -> None:
    bundle = Orchestrator(root=tmp_path).build()
    try:
        assert isinstance(bundle.embedder, MockEmbedder)
        assert isinstance(bundle.classifier, MockClassifier)
        assert (tmp_path / "data").is_dir()
        assert bundle.entities.supports_stable_ids
    finally:
        bundle.close()


def test_configure_logging_installs_one_handler() -> None:
    logger = configure_logging("debug")
    configure_logging("info")

    assert logger.name == "hypermem"
    assert logger.level == logging.INFO
    assert len([h for h in logger.handlers if h.get_name() == "hypermem-stderr"]) == 1


def test_configure_logging_follows_current_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    first, second = io.StringIO(), io.StringIO()
    monkeypatch.setattr(sys, "stderr", first)
    logger = configure_logging("warning")
    monkeypatch.setattr(sys, "stderr", second)
    configure_logging("warning")

    logger.getChild("test").warning("routed")

    assert "routed" not in first.getvalue()
    assert "routed" in second.getvalue()


def test_factory_defaults_to_mock_and_builds_groq_classifier() -> None:
    assert isinstance(build_embedder({}), MockEmbedder)
    assert isinstance(build_classifier({}), MockClassifier)
    embedder = build_embedder({"models": {"embedding": {"active_provider": "mock", "providers": {"mock": {"dimensions": 8}}}}})
    assert len(embedder.embed("hello world")) == 8

    groq = build_classifier({"models": {"classifier": {"active_provider": "groq", "providers": {"groq": {}}}}})
    assert isinstance(groq, OpenAIClassifier)
    assert groq.api_key_env == "GROQ_API_KEY"


def test_openai_provider_without_key_is_a_provider_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    classifier = OpenAIClassifier()

    with pytest.raises(ProviderError) as excinfo:
        classifier.classify("We chose Postgres")
    assert excinfo.value.prefix == "provider error"


def test_parse_classification_drops_confidence_for_facts() -> None:
    fact = parse_classification('{"type": "Decision", "state": "Fact", "confidence": "High", "worthy": true}')
    guess = parse_classification('{"type": "rule", "state": "assumption", "confidence": "med"}')

    assert fact.type is MemoryType.DECISION
    assert fact.confidence is None
    assert guess.state is MemoryState.ASSUMPTION
    assert guess.confidence is Confidence.MED
    with pytest.raises(ProviderError):
        parse_classification("not json")


def test_mock_classifier_rules() -> None:
    classifier = MockClassifier()

    assert classifier.classify("We decided to use Postgres").type is MemoryType.DECISION
    hedged = classifier.classify("The cache is probably too small")
    assert hedged.state is MemoryState.ASSUMPTION
    assert hedged.confidence is Confidence.MED
    assert not classifier.classify("ok thanks bye").worthy


def test_mock_embedder_is_deterministic_and_normalized() -> None:
    embedder = MockEmbedder(dimensions=16)
    first, second = embedder.embed_batch(["same text", "same text"])

    assert first == second
    assert sum(v * v for v in first) == pytest.approx(1.0)
