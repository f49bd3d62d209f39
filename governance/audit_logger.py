"""Structured JSONL audit log of store mutations."""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class AuditLogger:
    """Writes one JSON line per create, delete, edge or status change."""

    def __init__(self, log_path: Path | None = None) -> None:
        self.log_path = log_path
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("hypermem.audit")

    @staticmethod
    def _hash_inputs(inputs: dict[str, Any]) -> str:
        payload = json.dumps(inputs, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload).hexdigest()

    def log(
        self,
        action: str,
        kind: str,
        ids: list[str],
        inputs: dict[str, Any] | None = None,
        outcome: str = "ok",
    ) -> dict[str, Any]:
        """Append one JSONL audit event and return it."""
        event = {
            "timestamp": datetime.now(UTC).isoformat(),
            "action": action,
            "kind": kind,
            "ids": list(ids),
            "inputs_hash": self._hash_inputs(inputs or {}),
            "outcome": outcome,
        }
        if self.log_path is not None:
            with self.log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(event, ensure_ascii=True) + "\n")
        self.logger.info(json.dumps(event, ensure_ascii=True))
        return event
