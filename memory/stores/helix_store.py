"""HelixDB HTTP backend: every named query is a POST to ``{url}/{name}``."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from memory.errors import OperationTimeoutError, StoreError
from memory.stores.base import StoreBackend

logger = logging.getLogger("hypermem.store.helix")


class HelixStore(StoreBackend):
    """Remote graph-vector store reached over HTTP.

    Node ids are assigned by the server, so re-inserted records always get a
    new id.
    """

    supports_stable_ids = False

    def __init__(
        self,
        url: str = "http://localhost:6969",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(base_url=self.url, timeout=timeout, transport=transport)

    def query(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        logger.debug("POST %s/%s", self.url, name)
        try:
            response = self._client.post(f"/{name}", json=params)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(f"{name} exceeded {self.timeout}s against {self.url}") from exc
        except httpx.RequestError as exc:
            raise StoreError(f"backend unreachable at {self.url}: {exc}") from exc

        if response.is_error:
            detail = response.text.strip() or response.reason_phrase
            raise StoreError(f"{name} failed with HTTP {response.status_code}: {detail}")
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise StoreError(f"{name} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{name} returned {type(data).__name__}, expected an object")
        return data

    def close(self) -> None:
        self._client.close()
