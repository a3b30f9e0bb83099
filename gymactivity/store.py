"""
gymactivity/store.py
────────────────────
Document store contract plus two local implementations.

The production backend is a schema-flexible document database reached through
the client SDK; this layer only needs three calls from it:

  query(path, filters, limit)          → list of documents (equality filters only)
  append(path, document)               → new document id
  increment(path, doc_id, field, n)    → bump a numeric field in place

Paths are slash-separated collection paths, either global ("attendances") or
nested under a parent document ("gyms/<gymId>/members/<memberId>/attendance").
Every stored document carries its own id under the "id" key.

MemoryDocumentStore keeps everything in a dict and backs the tests.
JsonDocumentStore persists the same structure to a JSON file:

{
  "membershipAssignments": [ {"id": "ma1", "memberId": "m1", ...}, … ],
  "gyms/g1/attendances":   [ … ],
  …
}
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Protocol

log = logging.getLogger("gym_activity.store")


class StoreError(Exception):
    """Transport-level failure talking to the document store."""


class DocumentStore(Protocol):
    async def query(
        self, path: str, filters: dict[str, Any] | None = None, limit: int = 50
    ) -> list[dict[str, Any]]: ...

    async def append(self, path: str, document: dict[str, Any]) -> str: ...

    async def increment(
        self, path: str, doc_id: str, field: str, amount: int = 1
    ) -> None: ...


def _matches(doc: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(doc.get(k) == v for k, v in filters.items())


# ── in-memory store ───────────────────────────────────────────────────────────

class MemoryDocumentStore:
    """Dict-backed store. Documents are copied on the way in and out."""

    def __init__(self, collections: dict[str, list[dict[str, Any]]] | None = None):
        self._collections: dict[str, list[dict[str, Any]]] = {}
        self._lock = threading.RLock()
        for path, docs in (collections or {}).items():
            self.seed(path, docs)

    # Subclasses override these two to add persistence
    def _load(self) -> dict[str, list[dict[str, Any]]]:
        return self._collections

    def _save(self, collections: dict[str, list[dict[str, Any]]]) -> None:
        self._collections = collections

    def seed(self, path: str, docs: list[dict[str, Any]]) -> list[str]:
        """Synchronously insert documents; returns their ids."""
        ids = []
        with self._lock:
            collections = self._load()
            bucket = collections.setdefault(path.strip("/"), [])
            for doc in docs:
                stored = copy.deepcopy(doc)
                stored.setdefault("id", uuid.uuid4().hex[:20])
                bucket.append(stored)
                ids.append(stored["id"])
            self._save(collections)
        return ids

    def get(self, path: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            bucket = self._load().get(path.strip("/"), [])
            doc = next((d for d in bucket if d.get("id") == doc_id), None)
            return copy.deepcopy(doc) if doc is not None else None

    def paths(self) -> list[str]:
        with self._lock:
            return sorted(self._load())

    def count(self, path: str) -> int:
        with self._lock:
            return len(self._load().get(path.strip("/"), []))

    def find(
        self, path: str, filters: dict[str, Any] | None = None, limit: int = 50
    ) -> list[dict[str, Any]]:
        with self._lock:
            bucket = self._load().get(path.strip("/"), [])
            hits = [d for d in bucket if _matches(d, filters or {})]
            return copy.deepcopy(hits[:limit])

    def bump(self, path: str, doc_id: str, field: str, amount: int = 1) -> None:
        with self._lock:
            collections = self._load()
            bucket = collections.get(path.strip("/"), [])
            doc = next((d for d in bucket if d.get("id") == doc_id), None)
            if doc is None:
                raise StoreError(f"{path}/{doc_id} not found")
            try:
                doc[field] = int(doc.get(field) or 0) + amount
            except (TypeError, ValueError) as exc:
                raise StoreError(f"{path}/{doc_id}.{field} is not numeric") from exc
            self._save(collections)

    # Async surface; the in-memory store never blocks so it answers inline

    async def query(
        self, path: str, filters: dict[str, Any] | None = None, limit: int = 50
    ) -> list[dict[str, Any]]:
        return self.find(path, filters, limit)

    async def append(self, path: str, document: dict[str, Any]) -> str:
        return self.seed(path, [document])[0]

    async def increment(
        self, path: str, doc_id: str, field: str, amount: int = 1
    ) -> None:
        self.bump(path, doc_id, field, amount)


# ── JSON file store ───────────────────────────────────────────────────────────

class JsonDocumentStore(MemoryDocumentStore):
    """
    File-backed variant used for local development and the seed script.
    Reads the file on every call so several processes can share it; writes go
    through a temp file and an atomic replace. The async methods hand the file
    I/O to a worker thread; the RLock serialises them.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__()

    def _load(self) -> dict[str, list[dict[str, Any]]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Corrupt store file {self.path}: {exc}") from exc
        except OSError as exc:
            raise StoreError(f"Cannot read {self.path}: {exc}") from exc
        return data if isinstance(data, dict) else {}

    def _save(self, collections: dict[str, list[dict[str, Any]]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            with open(tmp, "w") as f:
                json.dump(collections, f, indent=2, default=str)
            tmp.replace(self.path)
            os.chmod(self.path, 0o600)
        except OSError as exc:
            raise StoreError(f"Cannot write {self.path}: {exc}") from exc
        log.debug("Store saved to %s (%d collections)", self.path, len(collections))

    async def query(
        self, path: str, filters: dict[str, Any] | None = None, limit: int = 50
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.find, path, filters, limit)

    async def append(self, path: str, document: dict[str, Any]) -> str:
        ids = await asyncio.to_thread(self.seed, path, [document])
        return ids[0]

    async def increment(
        self, path: str, doc_id: str, field: str, amount: int = 1
    ) -> None:
        await asyncio.to_thread(self.bump, path, doc_id, field, amount)
