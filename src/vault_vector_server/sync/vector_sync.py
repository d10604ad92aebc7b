"""
Vector Synchronization

Keeps the vector index and the id-mapping store aligned with the files of
one tenant.

Indexing a file
---------------
1. Parse the content into sections and build the chunk list:
   the whole document (index 0) followed by every retained section.
2. Embed every chunk, one at a time. Any embedding failure aborts before
   anything is written.
3. Insert the vectors one chunk at a time. A failed insert is logged and
   skipped, the remaining chunks are still inserted.
4. Record the ids of the inserted chunks under the file's id-mapping key,
   replacing any previous list.

Removing a file deletes the listed ids from the index and then the list
itself. Re-indexing is always delete-then-insert, driven by the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import ValidationError

from ..config import settings
from ..embeddings.embedder import Embedder, EmbeddingError
from ..storage.base import VectorEntry, VectorIdStore, VectorIndex
from ..vault.identity import DOCUMENT_CHUNK_INDEX, chunk_id, vector_ids_key
from ..vault.models import (
    Chunk,
    ChunkInsertOutcome,
    ChunkMetadata,
    EmbeddingBatch,
    EmbeddingRecord,
    FileRecord,
    SectionChunkMetadata,
    SectionInfo,
)
from ..vault.sections import parse_markdown_sections, render_section

logger = logging.getLogger("vault.vector_sync")


class VectorSync:
    """
    Embedding lifecycle of the files of one tenant.
    """

    def __init__(
        self,
        tenant_key: str,
        embedder: Embedder,
        index: VectorIndex,
        vector_ids: VectorIdStore,
        min_viable_content_length: Optional[int] = None,
        top_k: Optional[int] = None,
    ) -> None:
        self.tenant_key = tenant_key
        self._embedder = embedder
        self._index = index
        self._vector_ids = vector_ids
        self._min_viable_content_length = (
            min_viable_content_length
            if min_viable_content_length is not None
            else settings.min_viable_content_length
        )
        self._top_k = top_k if top_k is not None else settings.query_top_k

    # ------------------------------------------------------------------
    # Chunking
    # ------------------------------------------------------------------

    def ids_key(self, file: FileRecord) -> str:
        return vector_ids_key(self.tenant_key, file.path)

    def build_chunks(self, file: FileRecord, content: str) -> List[Chunk]:
        """
        Build the ordered chunk list of a file: the whole document first,
        then one chunk per retained section.
        """
        base: Dict[str, Any] = {
            "tenant_key": self.tenant_key,
            "path": file.path,
            "basename": file.basename,
            "modified_time": file.modified_time,
            "file_type": file.file_type,
        }

        chunks = [
            Chunk(
                id=chunk_id(self.tenant_key, file.path, DOCUMENT_CHUNK_INDEX),
                is_section=False,
                content=content,
                **base,
            )
        ]

        sections = parse_markdown_sections(content, self._min_viable_content_length)
        for i, section in enumerate(sections, start=1):
            chunks.append(
                Chunk(
                    id=chunk_id(self.tenant_key, file.path, i),
                    is_section=True,
                    section=SectionInfo(
                        heading=section.heading,
                        level=section.level,
                        path=section.path,
                    ),
                    content=render_section(section),
                    **base,
                )
            )

        return chunks

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def add_embeddings(
        self,
        file: FileRecord,
        content: str,
    ) -> Optional[EmbeddingBatch]:
        """
        Embed and index a file.

        Returns
        -------
        Optional[EmbeddingBatch]
            The inserted records and one outcome per chunk, or None if any
            chunk could not be embedded or the id list could not be stored.
        """
        logger.info("Adding embeddings for %s (tenant %s)", file.path, self.tenant_key)

        chunks = self.build_chunks(file, content)
        logger.info("Embedding %d chunks for %s", len(chunks), file.path)

        # Embed everything before touching any store.
        records: List[EmbeddingRecord] = []
        for index, chunk in enumerate(chunks):
            try:
                vector = await self._embedder.embed(chunk.content)
            except EmbeddingError:
                logger.exception(
                    "Failed to embed chunk %d of %s, aborting", index, file.path
                )
                return None

            if not vector:
                logger.error("Empty embedding for chunk %d of %s, aborting", index, file.path)
                return None

            records.append(
                EmbeddingRecord(**chunk.model_dump(), vector=vector)
            )

        batch = EmbeddingBatch()
        for index, record in enumerate(records):
            entry = VectorEntry(
                id=record.id,
                values=record.vector,
                metadata=record.metadata(),
            )
            try:
                await self._index.insert([entry])
            except Exception as exc:
                logger.error(
                    "Failed to insert chunk %d (%s) of %s: %s",
                    index,
                    record.id,
                    file.path,
                    exc,
                )
                batch.outcomes.append(
                    ChunkInsertOutcome(
                        chunk_id=record.id,
                        index=index,
                        inserted=False,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                )
                continue

            batch.records.append(record)
            batch.outcomes.append(
                ChunkInsertOutcome(chunk_id=record.id, index=index, inserted=True)
            )

        logger.info(
            "Inserted %d of %d embeddings for %s",
            len(batch.records),
            len(records),
            file.path,
        )

        try:
            await self._vector_ids.put(self.ids_key(file), batch.inserted_ids)
        except Exception:
            logger.exception("Failed to store vector ids for %s", file.path)
            await self._discard_inserted(file, batch)
            return None

        logger.info("Stored %d vector ids for %s", len(batch.records), file.path)
        return batch

    async def _discard_inserted(self, file: FileRecord, batch: EmbeddingBatch) -> None:
        """Remove chunks that no id list points to. Failures are only logged."""
        if not batch.inserted_ids:
            return
        try:
            await self._index.delete_by_ids(batch.inserted_ids)
        except Exception:
            logger.exception(
                "Failed to discard %d unlisted embeddings for %s",
                len(batch.inserted_ids),
                file.path,
            )

    async def delete_embeddings(self, file: FileRecord) -> bool:
        """
        Delete every indexed chunk of a file, then its id list.

        Returns True when nothing was indexed for the file.
        """
        key = self.ids_key(file)
        logger.info("Deleting embeddings for %s (tenant %s)", file.path, self.tenant_key)

        try:
            existing = await self._vector_ids.get(key)

            if existing is None:
                logger.info("No existing vectors found for %s", file.path)
                return True

            if existing:
                await self._index.delete_by_ids(existing)
            await self._vector_ids.delete(key)
        except Exception:
            logger.exception("Failed to delete embeddings for %s", file.path)
            return False

        logger.info("Deleted %d existing vectors for %s", len(existing), file.path)
        return True

    async def get_query_matches(
        self,
        text: str,
        file_type: Optional[str] = None,
        is_section: bool = False,
    ) -> List[ChunkMetadata]:
        """
        Embed ``text`` and return the metadata of the closest chunks.

        Returns an empty list if the text cannot be embedded.
        """
        logger.info("Searching matches for a text query (tenant %s)", self.tenant_key)

        try:
            vector = await self._embedder.embed(text)
        except EmbeddingError:
            logger.exception("Failed to embed query text")
            return []

        return await self.get_vector_matches(vector, file_type, is_section)

    async def get_vector_matches(
        self,
        vector: Sequence[float],
        file_type: Optional[str] = None,
        is_section: bool = False,
    ) -> List[ChunkMetadata]:
        """
        Return the metadata of the closest chunks, best first.

        Every returned payload must validate. If any does not, the whole
        result is discarded and an empty list is returned.

        Raises
        ------
        StorageError
            If the vector index query fails.
        """
        query_filter: Dict[str, Any] = {"isSection": is_section}
        if file_type:
            query_filter["fileType"] = file_type

        matches = await self._index.query(
            vector,
            top_k=self._top_k,
            filter=query_filter,
            return_values=True,
            return_metadata=True,
        )

        schema: Type[ChunkMetadata] = SectionChunkMetadata if is_section else ChunkMetadata

        results: List[ChunkMetadata] = []
        for match in matches:
            try:
                results.append(schema.model_validate(match.metadata or {}))
            except ValidationError as exc:
                logger.error(
                    "Malformed metadata for vector %s, discarding %d matches: %s",
                    match.id,
                    len(matches),
                    exc,
                )
                return []

        logger.info("Retrieved %d matches (tenant %s)", len(results), self.tenant_key)
        return results
