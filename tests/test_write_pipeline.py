"""Write pipeline tests: classification, skip path, validation and linking."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from llm.base_llm import BaseClassifier, BaseEmbedder, Classification
from llm.providers.mock_provider import MockClassifier, MockEmbedder
from memory.entity_store import EntityStore
from memory.errors import ProviderError, StoreError, ValidationError
from memory.graph import GraphNavigator
from memory.ingest import WritePipeline, WriteRequest
from memory.stores.local_store import LocalStore
from memory.types import (
    Confidence,
    ContextInput,
    ContextType,
    EntityKind,
    MemoryState,
    MemoryType,
    ObjectInput,
    ObjectType,
)


class RecordingStore(LocalStore):
    """Local store that records every query name."""

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self.calls: list[str] = []

    def query(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(name)
        return super().query(name, params)


class RecordingEmbedder(BaseEmbedder):
    def __init__(self) -> None:
        self.texts: list[str] = []

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.texts.extend(texts)
        return [[1.0, 0.0, 0.0] for _ in texts]


class FixedClassifier(BaseClassifier):
    def __init__(self, verdict: Classification) -> None:
        self.verdict = verdict
        self.calls = 0

    def classify(self, text: str) -> Classification:
        self.calls += 1
        return self.verdict


class EmbeddingDownStore(RecordingStore):
    """Local store whose vector index rejects every write."""

    def query(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        if name == "addMemoryEmbedding":
            self.calls.append(name)
            raise StoreError("vector index down")
        return super().query(name, params)


class ExplodingClassifier(BaseClassifier):
    def classify(self, text: str) -> Classification:
        raise AssertionError("classifier must not be called when type is given")


def build_pipeline(
    tmp_path: Path,
    classifier: BaseClassifier | None = None,
    embedder: BaseEmbedder | None = None,
) -> tuple[WritePipeline, RecordingStore]:
    backend = RecordingStore(tmp_path / "mem.db")
    pipeline = WritePipeline(EntityStore(backend), embedder or MockEmbedder(), classifier)
    return pipeline, backend


def test_explicit_type_skips_classification(tmp_path: Path) -> None:
    pipeline, _ = build_pipeline(tmp_path, classifier=ExplodingClassifier())

    result = pipeline.run(WriteRequest(statement="Use Postgres for billing", type=MemoryType.DECISION))

    assert not result.skipped
    assert result.memory is not None
    assert result.memory.type is MemoryType.DECISION
    assert result.memory.state is MemoryState.FACT
    assert result.memory.confidence is None


def test_not_worthy_statement_is_skipped_without_store_calls(tmp_path: Path) -> None:
    classifier = FixedClassifier(Classification(type=MemoryType.CONVENTION, worthy=False))
    pipeline, backend = build_pipeline(tmp_path, classifier=classifier)

    result = pipeline.run({"statement": "ok thanks"})

    assert result.skipped
    assert result.reason == "not memory-worthy"
    assert result.memory is None
    assert classifier.calls == 1
    assert backend.calls == []
    assert result.to_dict()["skipped"] is True


def test_classifier_verdict_fills_type_state_and_confidence(tmp_path: Path) -> None:
    classifier = FixedClassifier(
        Classification(type=MemoryType.DECISION, state=MemoryState.ASSUMPTION, confidence=Confidence.MED)
    )
    pipeline, _ = build_pipeline(tmp_path, classifier=classifier)

    result = pipeline.run({"statement": "We will probably move to Kubernetes"})

    assert result.memory.type is MemoryType.DECISION
    assert result.memory.state is MemoryState.ASSUMPTION
    assert result.memory.confidence is Confidence.MED


def test_mock_classifier_end_to_end(tmp_path: Path) -> None:
    pipeline, _ = build_pipeline(tmp_path, classifier=MockClassifier())

    result = pipeline.run({"statement": "Always run migrations before deploying"})

    assert result.memory.type is MemoryType.RULE
    assert pipeline.run({"statement": "hi"}).skipped


def test_missing_type_without_classifier_is_a_validation_error(tmp_path: Path) -> None:
    pipeline, backend = build_pipeline(tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        pipeline.run({"statement": "Something worth keeping"})

    assert excinfo.value.fields == ["type"]
    assert backend.calls == []


def test_assumption_without_confidence_fails_before_any_write(tmp_path: Path) -> None:
    pipeline, backend = build_pipeline(tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        pipeline.run({"statement": "Users prefer dark mode", "type": "preference", "state": "assumption"})

    assert "confidence" in excinfo.value.fields
    assert backend.calls == []


def test_classifier_assumption_without_confidence_is_a_provider_error(tmp_path: Path) -> None:
    classifier = FixedClassifier(Classification(type=MemoryType.RULE, state=MemoryState.ASSUMPTION))
    pipeline, backend = build_pipeline(tmp_path, classifier=classifier)

    with pytest.raises(ProviderError):
        pipeline.run({"statement": "Deploys probably need a freeze window"})

    assert backend.calls == []


def test_caller_confidence_completes_classifier_assumption(tmp_path: Path) -> None:
    classifier = FixedClassifier(Classification(type=MemoryType.RULE, state=MemoryState.ASSUMPTION))
    pipeline, _ = build_pipeline(tmp_path, classifier=classifier)

    result = pipeline.run({"statement": "Deploys probably need a freeze window", "confidence": "low"})

    assert result.memory.confidence is Confidence.LOW


def test_failed_embedding_removes_the_new_memory(tmp_path: Path) -> None:
    backend = EmbeddingDownStore(tmp_path / "mem.db")
    pipeline = WritePipeline(EntityStore(backend), MockEmbedder())

    with pytest.raises(StoreError, match="vector index down"):
        pipeline.run({"statement": "Pin dependencies", "type": "best_practice"})

    assert backend.calls[:2] == ["createMemory", "addMemoryEmbedding"]
    assert pipeline.entities.list_all(EntityKind.MEMORY) == []


def test_embeds_statement_and_notes_then_persists_embedding(tmp_path: Path) -> None:
    embedder = RecordingEmbedder()
    pipeline, backend = build_pipeline(tmp_path, embedder=embedder)

    result = pipeline.run(
        {"statement": "Pin dependencies", "type": "best_practice", "notes": "Use a lock file", "tags": ["a", "b"]}
    )

    assert embedder.texts == ["Pin dependencies\n\nUse a lock file"]
    assert backend.calls == ["createMemory", "addMemoryEmbedding"]
    assert result.memory.tags == ["a", "b"]
    [hit] = pipeline.entities.vector_search(EntityKind.MEMORY, [1.0, 0.0, 0.0], 5)
    assert hit.owner_id == result.memory.id


def test_unresolved_link_names_are_reported_not_fatal(tmp_path: Path) -> None:
    pipeline, _ = build_pipeline(tmp_path)
    entities = pipeline.entities
    pg = entities.create(EntityKind.OBJECT, ObjectInput(type=ObjectType.DATABASE, name="Postgres"))
    billing = entities.create(EntityKind.CONTEXT, ContextInput(type=ContextType.PROJECT, name="billing"))

    result = pipeline.run(
        {
            "statement": "Use Postgres for billing",
            "type": "decision",
            "objects": ["Postgres", "Oracle"],
            "contexts": ["billing"],
            "proposed_by": "ghost-agent",
        }
    )

    assert not result.skipped
    assert [(link.name, link.target_id) for link in result.links if link.resolved] == [
        ("Postgres", pg.id),
        ("billing", billing.id),
    ]
    assert sorted(link.name for link in result.unresolved) == ["Oracle", "ghost-agent"]
    graph = GraphNavigator(entities)
    assert [o.id for o in graph.objects(result.memory.id)] == [pg.id]
    assert [c.id for c in graph.contexts(result.memory.id)] == [billing.id]
    payload = result.to_dict()
    assert {u["name"] for u in payload["unresolved"]} == {"Oracle", "ghost-agent"}
