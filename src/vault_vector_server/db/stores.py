"""
PostgreSQL Stores

SQLAlchemy implementations of the storage contracts. Every mutation is
committed on its own so that each saga step is durable before the next
one starts. Database errors are rolled back and re-raised as
StorageError.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import FileRecordRow, VectorEntryRow, VectorIdSetRow
from ..storage.base import (
    FileStore,
    StorageError,
    VaultStores,
    VectorEntry,
    VectorIdStore,
    VectorIndex,
    VectorIndexError,
    VectorMatch,
)
from ..vault.models import FileRecord

logger = logging.getLogger("vault.stores")


class _SqlStore:
    """Shared session handling for tenant-scoped stores."""

    error_class = StorageError

    def __init__(self, session: AsyncSession, tenant_key: str) -> None:
        self._session = session
        self._tenant_key = tenant_key

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error(
                "%s failed for tenant %s: %s",
                action,
                self._tenant_key,
                type(exc).__name__,
            )
            raise self.error_class(f"{action} failed: {type(exc).__name__}") from exc


# ---------------------------------------------------------------------
# File Store
# ---------------------------------------------------------------------

class SqlFileStore(_SqlStore, FileStore):

    @staticmethod
    def _to_record(row: FileRecordRow) -> FileRecord:
        return FileRecord(
            path=row.path,
            basename=row.basename,
            modified_time=row.modified_time,
            file_type=row.file_type,
        )

    async def get_all(self) -> List[FileRecord]:
        async with self._guard("File listing"):
            stmt = (
                select(FileRecordRow)
                .where(FileRecordRow.tenant_key == self._tenant_key)
                .order_by(FileRecordRow.path)
            )
            result = await self._session.execute(stmt)
            return [self._to_record(row) for row in result.scalars().all()]

    async def get(self, path: str) -> Optional[FileRecord]:
        async with self._guard("File lookup"):
            row = await self._session.get(FileRecordRow, (self._tenant_key, path))
            return self._to_record(row) if row is not None else None

    async def put(self, record: FileRecord) -> None:
        async with self._guard("File write"):
            await self._session.merge(
                FileRecordRow(
                    tenant_key=self._tenant_key,
                    path=record.path,
                    basename=record.basename,
                    modified_time=record.modified_time,
                    file_type=record.file_type,
                )
            )
            await self._session.commit()

    async def delete(self, path: str) -> None:
        async with self._guard("File delete"):
            stmt = delete(FileRecordRow).where(
                FileRecordRow.tenant_key == self._tenant_key,
                FileRecordRow.path == path,
            )
            await self._session.execute(stmt)
            await self._session.commit()


# ---------------------------------------------------------------------
# Vector Id Store
# ---------------------------------------------------------------------

class SqlVectorIdStore(_SqlStore, VectorIdStore):

    async def get(self, key: str) -> Optional[List[str]]:
        async with self._guard("Vector id lookup"):
            row = await self._session.get(VectorIdSetRow, (self._tenant_key, key))
            return list(row.ids) if row is not None else None

    async def put(self, key: str, ids: Sequence[str]) -> None:
        async with self._guard("Vector id write"):
            await self._session.merge(
                VectorIdSetRow(tenant_key=self._tenant_key, key=key, ids=list(ids))
            )
            await self._session.commit()

    async def delete(self, key: str) -> None:
        async with self._guard("Vector id delete"):
            stmt = delete(VectorIdSetRow).where(
                VectorIdSetRow.tenant_key == self._tenant_key,
                VectorIdSetRow.key == key,
            )
            await self._session.execute(stmt)
            await self._session.commit()


# ---------------------------------------------------------------------
# Vector Index
# ---------------------------------------------------------------------

class SqlVectorIndex(_SqlStore, VectorIndex):
    """
    pgvector-backed index. Similarity is cosine; metadata filters use JSONB
    containment.
    """

    error_class = VectorIndexError

    async def insert(self, entries: Sequence[VectorEntry]) -> None:
        if not entries:
            return

        async with self._guard("Vector insert"):
            for entry in entries:
                await self._session.merge(
                    VectorEntryRow(
                        id=entry.id,
                        tenant_key=self._tenant_key,
                        metadata_=dict(entry.metadata),
                        embedding=list(entry.values),
                    )
                )
            await self._session.commit()

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        if not ids:
            return

        async with self._guard("Vector delete"):
            stmt = delete(VectorEntryRow).where(
                VectorEntryRow.tenant_key == self._tenant_key,
                VectorEntryRow.id.in_(list(ids)),
            )
            await self._session.execute(stmt)
            await self._session.commit()

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
        return_values: bool = False,
        return_metadata: bool = True,
    ) -> List[VectorMatch]:
        cosine_distance = VectorEntryRow.embedding.cosine_distance(list(vector))

        columns = [
            VectorEntryRow.id,
            VectorEntryRow.metadata_.label("meta"),
            (1 - cosine_distance).label("score"),
        ]
        if return_values:
            columns.append(VectorEntryRow.embedding)

        stmt = (
            select(*columns)
            .where(VectorEntryRow.tenant_key == self._tenant_key)
            .order_by(cosine_distance)
            .limit(top_k)
        )

        if filter:
            stmt = stmt.where(VectorEntryRow.metadata_.contains(filter))

        async with self._guard("Vector query"):
            result = await self._session.execute(stmt)
            rows = result.all()

        return [
            VectorMatch(
                id=row.id,
                score=float(row.score),
                values=[float(x) for x in row.embedding] if return_values else None,
                metadata=dict(row.meta) if return_metadata else None,
            )
            for row in rows
        ]


def sql_stores(session: AsyncSession, tenant_key: str) -> VaultStores:
    """
    Build the PostgreSQL-backed stores of a tenant over one session.
    """
    return VaultStores(
        files=SqlFileStore(session, tenant_key),
        vector_ids=SqlVectorIdStore(session, tenant_key),
        index=SqlVectorIndex(session, tenant_key),
    )
