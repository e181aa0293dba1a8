"""
Search index clients.
SolrIndexClient talks to a Solr core's JSON update handler; MemorySearchIndex keeps
documents in process for local runs. Both expose index / remove / commit.
"""
import logging
from typing import Iterator, Optional, Protocol

import httpx

from config import settings

logger = logging.getLogger(__name__)


class SearchIndex(Protocol):
    def index(self, document: dict) -> None: ...

    def remove(self, document_id: str) -> None: ...

    def commit(self) -> None: ...


class SolrIndexClient:
    """Thin wrapper around the Solr /update JSON API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        self.base = (base_url or settings.SOLR_URL).rstrip("/")
        self.client = httpx.Client(
            timeout=timeout or settings.SOLR_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    def _update(self, payload, **params) -> None:
        resp = self.client.post(f"{self.base}/update", json=payload, params=params or None)
        if resp.status_code != 200:
            logger.warning("solr update → %s: %s", resp.status_code, resp.text[:200])
        resp.raise_for_status()

    def index(self, document: dict) -> None:
        self._update([document])

    def remove(self, document_id: str) -> None:
        self._update({"delete": {"id": document_id}})

    def commit(self) -> None:
        self._update({"commit": {}})

    def ping(self) -> bool:
        resp = self.client.get(f"{self.base}/admin/ping", params={"wt": "json"})
        resp.raise_for_status()
        return resp.json().get("status") == "OK"

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()


class MemorySearchIndex:
    """In-process index. Pushed documents become visible on commit()."""

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self._pending: dict[str, Optional[dict]] = {}
        self.commits = 0

    def index(self, document: dict) -> None:
        self._pending[document["id"]] = document

    def remove(self, document_id: str) -> None:
        self._pending[document_id] = None

    def commit(self) -> None:
        for doc_id, document in self._pending.items():
            if document is None:
                self.documents.pop(doc_id, None)
            else:
                self.documents[doc_id] = document
        self._pending.clear()
        self.commits += 1

    def ping(self) -> bool:
        return True


_memory_index: Optional[MemorySearchIndex] = None


def get_search_index() -> Iterator[SearchIndex]:
    """FastAPI dependency yielding the configured index backend."""
    global _memory_index
    if settings.SEARCH_INDEX_BACKEND == "solr":
        with SolrIndexClient() as client:
            yield client
        return
    if _memory_index is None:
        _memory_index = MemorySearchIndex()
    yield _memory_index
