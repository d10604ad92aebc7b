"""
Storage Collaborator Contracts

The synchronization engines depend only on the three interfaces below.
Every instance is scoped to a single tenant: the tenant key is bound when
the store is built, never passed per call.

Implementations must make a write to a key visible to every subsequent
read of that key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..vault.models import FileRecord


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class StorageError(RuntimeError):
    """Base error for storage collaborator failures."""


class VectorIndexError(StorageError):
    """Raised when the vector index rejects an operation."""


# ---------------------------------------------------------------------
# Vector Index Payloads
# ---------------------------------------------------------------------

@dataclass
class VectorEntry:
    id: str
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    id: str
    score: float
    values: Optional[List[float]] = None
    metadata: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------

class FileStore(ABC):
    """File records of one tenant, keyed by path."""

    @abstractmethod
    async def get_all(self) -> List[FileRecord]: ...

    @abstractmethod
    async def get(self, path: str) -> Optional[FileRecord]: ...

    @abstractmethod
    async def put(self, record: FileRecord) -> None: ...

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove the record at ``path``. Missing paths are not an error."""


class VectorIdStore(ABC):
    """Chunk id lists of one tenant, keyed by id-mapping key."""

    @abstractmethod
    async def get(self, key: str) -> Optional[List[str]]: ...

    @abstractmethod
    async def put(self, key: str, ids: Sequence[str]) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...


class VectorIndex(ABC):
    """Similarity-searchable vectors of one tenant."""

    @abstractmethod
    async def insert(self, entries: Sequence[VectorEntry]) -> None:
        """Store entries. An entry whose id already exists is overwritten."""

    @abstractmethod
    async def delete_by_ids(self, ids: Sequence[str]) -> None: ...

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
        return_values: bool = False,
        return_metadata: bool = True,
    ) -> List[VectorMatch]:
        """
        Return the ``top_k`` nearest entries, best first.

        ``filter`` keeps only entries whose metadata equals every given
        key/value pair.
        """


@dataclass
class VaultStores:
    """The collaborators serving one tenant."""
    files: FileStore
    vector_ids: VectorIdStore
    index: VectorIndex
