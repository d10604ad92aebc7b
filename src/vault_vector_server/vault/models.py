"""
Vault Data Models

This module defines the canonical data model shared by the synchronization
engines, the storage collaborators and the HTTP layer.

Naming
------
Python attributes are snake_case. Every model serializes with camelCase
aliases (``modifiedTime``, ``fileType``, ``isSection``...), which is the
shape used both on the wire and inside vector-index metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class VaultModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------
# File Records
# ---------------------------------------------------------------------

class FileRecord(VaultModel):
    """
    Metadata for one file of the vault.

    One record exists per distinct path per tenant. Body content is never
    part of a record.
    """

    path: str = Field(..., min_length=1)
    basename: str = Field(..., min_length=1)
    modified_time: int = Field(..., ge=0, description="Modification time, epoch ms.")
    file_type: str = Field(..., min_length=1)


class VaultFile(FileRecord):
    """A file as pushed by the client, body included."""

    content: str = ""

    def to_record(self) -> FileRecord:
        return FileRecord.model_validate(self.model_dump(exclude={"content"}))


# ---------------------------------------------------------------------
# Sections & Chunks
# ---------------------------------------------------------------------

@dataclass
class Section:
    """A heading-delimited section of a markdown document."""
    heading: str
    level: int
    path: str
    content: str


class SectionInfo(VaultModel):
    heading: str
    level: int = Field(..., ge=1)
    path: str


class Chunk(VaultModel):
    """
    The unit that receives one embedding: either the whole file
    (``is_section`` false, index 0) or one parsed section.
    """

    id: str = Field(..., min_length=1, max_length=64)
    tenant_key: str
    path: str
    basename: str
    modified_time: int
    file_type: str
    is_section: bool = False
    section: Optional[SectionInfo] = None
    content: str


class EmbeddingRecord(Chunk):
    """A chunk together with its vector."""

    vector: List[float]

    def metadata(self) -> Dict[str, Any]:
        """Chunk fields stored alongside the vector (no id, content or vector)."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id", "content", "vector"},
            exclude_none=True,
        )


class ChunkMetadata(VaultModel):
    """
    Metadata payload returned by vector-index queries.

    Unknown keys are ignored, the file fields are mandatory.
    """

    model_config = ConfigDict(extra="ignore")

    tenant_key: Optional[str] = None
    path: str
    basename: str
    modified_time: int
    file_type: str
    is_section: bool = False
    section: Optional[SectionInfo] = None


class SectionChunkMetadata(ChunkMetadata):
    """Metadata of a section chunk, where ``section`` must be well formed."""

    section: SectionInfo


class VectorIdSet(VaultModel):
    """Ordered chunk ids belonging to one file of one tenant."""

    key: str
    ids: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Batch Results
# ---------------------------------------------------------------------

class ChunkInsertOutcome(VaultModel):
    chunk_id: str
    index: int = Field(..., ge=0)
    inserted: bool
    error: Optional[str] = None


class EmbeddingBatch(VaultModel):
    """
    Result of indexing one file.

    ``records`` holds only the chunks that reached the vector index,
    ``outcomes`` holds one entry per chunk in chunk order.
    """

    records: List[EmbeddingRecord] = Field(default_factory=list)
    outcomes: List[ChunkInsertOutcome] = Field(default_factory=list)

    @property
    def inserted_ids(self) -> List[str]:
        return [record.id for record in self.records]

    @property
    def failed(self) -> List[ChunkInsertOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.inserted]
