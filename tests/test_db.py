"""
Database Store Tests

Exercise the SQLAlchemy stores against a mocked AsyncSession:
- Model construction
- Commit-per-mutation behaviour
- Error translation to StorageError
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from vault_vector_server.db import (
    FileRecordRow,
    SqlFileStore,
    SqlVectorIdStore,
    SqlVectorIndex,
    VectorEntryRow,
    VectorIdSetRow,
    sql_stores,
)
from vault_vector_server.storage.base import StorageError, VectorEntry, VectorIndexError
from vault_vector_server.vault.models import FileRecord


@pytest.fixture
def session():
    return AsyncMock()


class TestModels:
    """Tests for the table definitions."""

    def test_table_names(self):
        assert FileRecordRow.__tablename__ == "file_record"
        assert VectorIdSetRow.__tablename__ == "vector_id_set"
        assert VectorEntryRow.__tablename__ == "vector_entry"

    def test_file_record_has_no_content_column(self):
        assert "content" not in FileRecordRow.__table__.columns

    def test_vector_entry_metadata_column_name(self):
        assert "metadata" in VectorEntryRow.__table__.columns


class TestSqlStores:
    """Tests for commit and error handling of the SQL stores."""

    def test_sql_stores_bundle(self, session):
        stores = sql_stores(session, "vault-1")

        assert isinstance(stores.files, SqlFileStore)
        assert isinstance(stores.vector_ids, SqlVectorIdStore)
        assert isinstance(stores.index, SqlVectorIndex)

    @pytest.mark.asyncio
    async def test_file_put_merges_and_commits(self, session):
        store = SqlFileStore(session, "vault-1")
        record = FileRecord(path="a.md", basename="a", modified_time=1, file_type="note")

        await store.put(record)

        row = session.merge.await_args.args[0]
        assert row.tenant_key == "vault-1"
        assert row.path == "a.md"
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_file_get_missing_returns_none(self, session):
        session.get.return_value = None

        assert await SqlFileStore(session, "vault-1").get("missing.md") is None
        session.get.assert_awaited_once_with(FileRecordRow, ("vault-1", "missing.md"))

    @pytest.mark.asyncio
    async def test_vector_ids_roundtrip_row(self, session):
        session.get.return_value = VectorIdSetRow(tenant_key="vault-1", key="k", ids=["x", "y"])

        assert await SqlVectorIdStore(session, "vault-1").get("k") == ["x", "y"]

    @pytest.mark.asyncio
    async def test_database_error_becomes_storage_error(self, session):
        session.execute.side_effect = OperationalError("DELETE", {}, Exception("down"))

        with pytest.raises(StorageError):
            await SqlFileStore(session, "vault-1").delete("a.md")

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vector_insert_error_is_index_error(self, session):
        session.merge.side_effect = OperationalError("INSERT", {}, Exception("down"))
        index = SqlVectorIndex(session, "vault-1")

        with pytest.raises(VectorIndexError):
            await index.insert([VectorEntry(id="abc", values=[0.1, 0.2], metadata={})])

    @pytest.mark.asyncio
    async def test_vector_delete_skips_empty_id_list(self, session):
        await SqlVectorIndex(session, "vault-1").delete_by_ids([])

        session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vector_query_maps_rows(self, session):
        row = MagicMock(id="abc", score=0.75, meta={"path": "a.md"}, embedding=[0.1, 0.2])
        result = MagicMock()
        result.all.return_value = [row]
        session.execute.return_value = result

        matches = await SqlVectorIndex(session, "vault-1").query(
            [0.1, 0.2],
            top_k=20,
            filter={"isSection": False},
            return_values=True,
        )

        assert len(matches) == 1
        assert matches[0].id == "abc"
        assert matches[0].score == 0.75
        assert matches[0].metadata == {"path": "a.md"}
        assert matches[0].values == [0.1, 0.2]
