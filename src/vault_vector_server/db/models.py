"""
SQLAlchemy Models

Defines the database schema for:
- File records (one row per tenant and path)
- Vector id sets (chunk ids indexed for one file)
- Vector entries (pgvector embeddings with JSONB metadata)
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from pgvector.sqlalchemy import Vector

from ..config import settings


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# File Record Model
# ---------------------------------------------------------------------

class FileRecordRow(Base):
    """
    Metadata of one vault file. Content is never stored.
    """
    __tablename__ = "file_record"

    tenant_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    path: Mapped[str] = mapped_column(Text, primary_key=True)
    basename: Mapped[str] = mapped_column(Text, nullable=False)
    modified_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_type: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


# ---------------------------------------------------------------------
# Vector Id Set Model
# ---------------------------------------------------------------------

class VectorIdSetRow(Base):
    """
    Ordered chunk ids stored in the vector index for one file.
    """
    __tablename__ = "vector_id_set"

    tenant_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(Text, primary_key=True)
    ids: Mapped[List[str]] = mapped_column(JSONB, nullable=False, default=list)


# ---------------------------------------------------------------------
# Vector Entry Model
# ---------------------------------------------------------------------

class VectorEntryRow(Base):
    """
    One embedded chunk. Uses pgvector for similarity search.
    """
    __tablename__ = "vector_entry"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_key: Mapped[str] = mapped_column(String(64), nullable=False)
    metadata_: Mapped[dict] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        default=dict,
    )

    embedding = Column(Vector(settings.embedding_dimensions), nullable=False)

    __table_args__ = (
        Index("idx_vector_entry_tenant", "tenant_key"),
        Index("idx_vector_entry_metadata", "metadata", postgresql_using="gin"),
    )
