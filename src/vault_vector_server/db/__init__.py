"""
Database Package

Provides SQLAlchemy async session management, model definitions and the
PostgreSQL implementations of the storage contracts.
"""

from .session import get_async_session, async_engine, AsyncSessionLocal, create_tables
from .models import Base, FileRecordRow, VectorIdSetRow, VectorEntryRow
from .stores import SqlFileStore, SqlVectorIdStore, SqlVectorIndex, sql_stores

__all__ = [
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    "create_tables",
    "Base",
    "FileRecordRow",
    "VectorIdSetRow",
    "VectorEntryRow",
    "SqlFileStore",
    "SqlVectorIdStore",
    "SqlVectorIndex",
    "sql_stores",
]
