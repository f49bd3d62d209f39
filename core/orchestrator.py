"""Top-level runtime wiring: one explicit store handle shared by every component."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.config import ensure_runtime_dirs, load_effective_config
from core.logging_setup import configure_logging
from governance.audit_logger import AuditLogger
from llm.base_llm import BaseClassifier, BaseEmbedder
from llm.llm_factory import build_classifier, build_embedder
from memory.catalog import Catalog
from memory.entity_store import EntityStore
from memory.errors import ValidationError
from memory.graph import GraphNavigator
from memory.ingest import WritePipeline
from memory.lifecycle import StatusLifecycle
from memory.retrieval import ReadPipeline
from memory.stores.base import StoreBackend
from memory.stores.helix_store import HelixStore
from memory.stores.local_store import LocalStore

logger = logging.getLogger("hypermem.runtime")


@dataclass
class RuntimeBundle:
    """Holds initialized runtime components."""

    config: dict[str, Any]
    backend: StoreBackend
    entities: EntityStore
    embedder: BaseEmbedder
    classifier: BaseClassifier
    lifecycle: StatusLifecycle
    writer: WritePipeline
    reader: ReadPipeline
    graph: GraphNavigator
    catalog: Catalog

    def close(self) -> None:
        self.backend.close()


def build_backend(config: dict[str, Any], db_path: Path) -> StoreBackend:
    store_cfg = config.get("store", {})
    backend = str(store_cfg.get("backend", "local")).lower()
    if backend == "helix":
        return HelixStore(
            url=str(store_cfg.get("url", "http://localhost:6969")),
            timeout=float(store_cfg.get("timeout_seconds", 30.0)),
        )
    if backend == "local":
        return LocalStore(db_path)
    raise ValidationError(f"unknown store backend {backend!r}; expected local or helix", fields=["store.backend"])


class Orchestrator:
    """Creates and wires runtime components for CLI use."""

    def __init__(self, root: Path | None = None) -> None:
        home = os.environ.get("HYPERMEM_HOME")
        default_root = Path(home) if home else Path(__file__).resolve().parents[1]
        self.root = (root or default_root).resolve()

    def build(self) -> RuntimeBundle:
        config = load_effective_config(self.root)
        configure_logging(config.get("logging", {}).get("level", "WARNING"))
        paths = ensure_runtime_dirs(self.root, config)

        backend = build_backend(config, paths["db_path"])
        entities = EntityStore(backend, audit_logger=AuditLogger(paths["audit_log_path"]))
        embedder = build_embedder(config)
        classifier = build_classifier(config)
        retrieval_cfg = config.get("retrieval", {})
        logger.debug("runtime built with %s backend", type(backend).__name__)

        return RuntimeBundle(
            config=config,
            backend=backend,
            entities=entities,
            embedder=embedder,
            classifier=classifier,
            lifecycle=StatusLifecycle(entities, embedder=embedder),
            writer=WritePipeline(entities, embedder, classifier),
            reader=ReadPipeline(
                entities,
                embedder,
                overfetch=int(retrieval_cfg.get("overfetch_factor", 2)),
                default_limit=int(retrieval_cfg.get("default_limit", 10)),
            ),
            graph=GraphNavigator(entities),
            catalog=Catalog(entities, embedder=embedder),
        )
