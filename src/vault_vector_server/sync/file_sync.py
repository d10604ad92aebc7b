"""
File Synchronization

File-record CRUD for one tenant. Records never carry body content.
"""

from __future__ import annotations

import logging
from typing import List

from ..storage.base import FileStore
from ..vault.models import FileRecord, VaultFile

logger = logging.getLogger("vault.file_sync")


class FileSync:

    def __init__(self, tenant_key: str, files: FileStore) -> None:
        self.tenant_key = tenant_key
        self._files = files

    async def get_files(self) -> List[FileRecord]:
        """Return every file record of the tenant. Store failures propagate."""
        logger.info("Getting files for tenant %s", self.tenant_key)
        files = await self._files.get_all()
        logger.info("Retrieved %d files for tenant %s", len(files), self.tenant_key)
        return files

    async def add_file(self, file: FileRecord) -> bool:
        """Store a file record, overwriting any record at the same path."""
        record = file.to_record() if isinstance(file, VaultFile) else file

        logger.info("Adding file %s for tenant %s", record.path, self.tenant_key)
        try:
            await self._files.put(record)
        except Exception:
            logger.exception("Failed to add file %s for tenant %s", record.path, self.tenant_key)
            return False

        logger.info("Added file %s for tenant %s", record.path, self.tenant_key)
        return True

    async def delete_file(self, file: FileRecord) -> bool:
        """Remove a file record. Removing a missing path succeeds."""
        logger.info("Deleting file %s for tenant %s", file.path, self.tenant_key)
        try:
            await self._files.delete(file.path)
        except Exception:
            logger.exception("Failed to delete file %s for tenant %s", file.path, self.tenant_key)
            return False

        logger.info("Deleted file %s for tenant %s", file.path, self.tenant_key)
        return True
