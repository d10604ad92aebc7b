"""
Chunk Identity

Deterministic, fixed-length identifiers for chunks and id-mapping keys.

Chunk index 0 is the whole-document chunk, indices 1..n are the parsed
sections in document order. Re-indexing the same file therefore addresses
the same ids every time.
"""

from __future__ import annotations

import hashlib

ID_SEPARATOR = ":"
DOCUMENT_CHUNK_INDEX = 0


def chunk_id(tenant_key: str, path: str, index: int) -> str:
    """Return the 40-character hex id of chunk ``index`` of ``path``."""
    if index < 0:
        raise ValueError(f"Chunk index must be non-negative, got {index}")

    raw = f"{tenant_key}{ID_SEPARATOR}{path}{ID_SEPARATOR}{index}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def vector_ids_key(tenant_key: str, path: str) -> str:
    """Key of the VectorIdSet that lists the chunk ids of ``path``."""
    return f"{tenant_key}_vector-ids_{path}"
