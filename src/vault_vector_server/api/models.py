"""
API Models

Request/response schemas for the vault endpoints. Field names are
camelCase on the wire.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from ..config import settings
from ..sync.saga import StepOutcome
from ..vault.models import ChunkInsertOutcome, ChunkMetadata, FileRecord, VaultModel


# ---------------------------------------------------------------------
# File Models
# ---------------------------------------------------------------------

class FilesResponse(VaultModel):
    data: List[FileRecord]


class SyncResponse(VaultModel):
    """
    Result of a successful file mutation.
    """
    message: str
    count: Optional[int] = Field(default=None, ge=0)
    steps: List[StepOutcome] = Field(default_factory=list)
    failed_chunks: List[ChunkInsertOutcome] = Field(default_factory=list)


class SyncErrorResponse(VaultModel):
    """
    Result of a failed file mutation, naming the step that failed.
    """
    error: str
    path: Optional[str] = None
    failed_step: Optional[str] = None
    steps: List[StepOutcome] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Query Models
# ---------------------------------------------------------------------

class QueryRequest(VaultModel):
    """
    Text or vector query. Exactly one of ``text`` and ``vector`` is given.
    """
    text: Optional[str] = Field(default=None, min_length=1)
    vector: Optional[List[float]] = Field(default=None, min_length=1)
    type: Optional[str] = None
    is_section: bool = False

    @field_validator("vector")
    @classmethod
    def check_vector_dimensions(cls, vector: Optional[List[float]]) -> Optional[List[float]]:
        if vector is not None and len(vector) != settings.embedding_dimensions:
            raise ValueError(
                f"Vector must have {settings.embedding_dimensions} dimensions, got {len(vector)}."
            )
        return vector

    @model_validator(mode="after")
    def check_text_or_vector(self) -> "QueryRequest":
        if (self.text is None) == (self.vector is None):
            raise ValueError("Provide exactly one of 'text' or 'vector'.")
        return self


class MatchesResponse(VaultModel):
    data: List[ChunkMetadata]
