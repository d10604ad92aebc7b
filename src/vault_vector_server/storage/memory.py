"""
In-Memory Stores

Process-local implementations of the storage contracts, used for local
development (``STORAGE_BACKEND=memory``) and tests.

Thread Safety
-------------
- The tenant registry is protected by an RLock
- Each store instance has its own lock
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .base import (
    FileStore,
    VaultStores,
    VectorEntry,
    VectorIdStore,
    VectorIndex,
    VectorIndexError,
    VectorMatch,
)
from ..vault.models import FileRecord


class MemoryFileStore(FileStore):

    def __init__(self) -> None:
        self._records: Dict[str, FileRecord] = {}
        self._lock = RLock()

    async def get_all(self) -> List[FileRecord]:
        with self._lock:
            return list(self._records.values())

    async def get(self, path: str) -> Optional[FileRecord]:
        with self._lock:
            return self._records.get(path)

    async def put(self, record: FileRecord) -> None:
        with self._lock:
            self._records[record.path] = record

    async def delete(self, path: str) -> None:
        with self._lock:
            self._records.pop(path, None)


class MemoryVectorIdStore(VectorIdStore):

    def __init__(self) -> None:
        self._ids: Dict[str, List[str]] = {}
        self._lock = RLock()

    async def get(self, key: str) -> Optional[List[str]]:
        with self._lock:
            ids = self._ids.get(key)
            return list(ids) if ids is not None else None

    async def put(self, key: str, ids: Sequence[str]) -> None:
        with self._lock:
            self._ids[key] = list(ids)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._ids.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._ids)


class MemoryVectorIndex(VectorIndex):
    """
    Brute-force cosine-similarity index.

    Vectors are L2-normalized on insert so that a dot product is the
    cosine similarity.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, VectorEntry] = {}
        self._normalized: Dict[str, np.ndarray] = {}
        self._dim: Optional[int] = None
        self._lock = RLock()

    @staticmethod
    def _normalize(values: Sequence[float]) -> np.ndarray:
        vec = np.asarray(values, dtype="float32")
        norm = np.linalg.norm(vec)
        return vec / norm if norm > 0 else vec

    async def insert(self, entries: Sequence[VectorEntry]) -> None:
        with self._lock:
            for entry in entries:
                if not entry.values:
                    raise VectorIndexError(f"Empty vector for id {entry.id}")

                if self._dim is None:
                    self._dim = len(entry.values)
                elif len(entry.values) != self._dim:
                    raise VectorIndexError(
                        f"Vector dimension {len(entry.values)} does not match index dimension {self._dim}"
                    )

                self._entries[entry.id] = VectorEntry(
                    id=entry.id,
                    values=list(entry.values),
                    metadata=dict(entry.metadata),
                )
                self._normalized[entry.id] = self._normalize(entry.values)

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        with self._lock:
            for doc_id in ids:
                self._entries.pop(doc_id, None)
                self._normalized.pop(doc_id, None)

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
        return_values: bool = False,
        return_metadata: bool = True,
    ) -> List[VectorMatch]:
        with self._lock:
            if not self._entries:
                return []

            if self._dim is not None and len(vector) != self._dim:
                raise VectorIndexError(
                    f"Query dimension {len(vector)} does not match index dimension {self._dim}"
                )

            q = self._normalize(vector)
            candidates = [
                entry
                for entry in self._entries.values()
                if all(entry.metadata.get(k) == v for k, v in (filter or {}).items())
            ]

            scored = sorted(
                (
                    (float(np.dot(self._normalized[entry.id], q)), entry)
                    for entry in candidates
                ),
                key=lambda pair: pair[0],
                reverse=True,
            )

            return [
                VectorMatch(
                    id=entry.id,
                    score=score,
                    values=list(entry.values) if return_values else None,
                    metadata=dict(entry.metadata) if return_metadata else None,
                )
                for score, entry in scored[:top_k]
            ]

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)


# ---------------------------------------------------------------------
# Tenant Registry
# ---------------------------------------------------------------------

_store_registry: Dict[str, VaultStores] = {}
_registry_lock = RLock()


def get_memory_stores(tenant_key: str) -> VaultStores:
    """
    Get or create the in-memory stores of a tenant.
    """
    with _registry_lock:
        stores = _store_registry.get(tenant_key)
        if stores is None:
            stores = VaultStores(
                files=MemoryFileStore(),
                vector_ids=MemoryVectorIdStore(),
                index=MemoryVectorIndex(),
            )
            _store_registry[tenant_key] = stores
        return stores


def clear_memory_stores() -> None:
    """
    Drop every tenant's in-memory stores.
    """
    with _registry_lock:
        _store_registry.clear()
