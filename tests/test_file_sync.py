from unittest.mock import AsyncMock

import pytest

from vault_vector_server.storage.base import StorageError
from vault_vector_server.sync.file_sync import FileSync
from vault_vector_server.vault.models import FileRecord

from conftest import TENANT, make_file


@pytest.mark.asyncio
async def test_add_file_strips_content(file_sync, stores):
    file = make_file()

    assert await file_sync.add_file(file) is True

    stored = await stores.files.get(file.path)
    assert type(stored) is FileRecord
    assert "content" not in stored.model_dump()


@pytest.mark.asyncio
async def test_add_file_overwrites_same_path(file_sync):
    await file_sync.add_file(make_file(mtime=1))
    await file_sync.add_file(make_file(mtime=2))

    files = await file_sync.get_files()
    assert [f.modified_time for f in files] == [2]


@pytest.mark.asyncio
async def test_delete_missing_file_is_not_an_error(file_sync):
    assert await file_sync.delete_file(make_file().to_record()) is True


@pytest.mark.asyncio
async def test_delete_file_removes_record(file_sync):
    file = make_file()
    await file_sync.add_file(file)

    assert await file_sync.delete_file(file.to_record()) is True
    assert await file_sync.get_files() == []


@pytest.mark.asyncio
async def test_store_failures_report_false():
    files = AsyncMock()
    files.put.side_effect = StorageError("down")
    files.delete.side_effect = StorageError("down")
    sync = FileSync(TENANT, files)

    assert await sync.add_file(make_file()) is False
    assert await sync.delete_file(make_file().to_record()) is False


@pytest.mark.asyncio
async def test_get_files_propagates_store_failure():
    files = AsyncMock()
    files.get_all.side_effect = StorageError("down")

    with pytest.raises(StorageError):
        await FileSync(TENANT, files).get_files()
