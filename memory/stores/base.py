"""Backend interface: an opaque node/edge/vector store addressed by query name."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StoreBackend(ABC):
    """Query-by-name RPC surface of the graph-vector store.

    Backends only insert and delete; there is no update primitive.
    """

    #: True when ``create*`` honors a caller-supplied ``id`` parameter.
    supports_stable_ids: bool = False

    @abstractmethod
    def query(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        """Run one named query and return its response mapping."""

    def close(self) -> None:
        """Release connections held by the backend."""
