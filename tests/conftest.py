import os

# Configuration must be in place before the package reads its settings.
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("AUTHORIZED_API_KEYS", "test-api-key,second-key")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("EMBEDDING_DIMENSIONS", "8")

import hashlib
from typing import List, Optional, Set

import pytest

from vault_vector_server.embeddings.embedder import EmbeddingError
from vault_vector_server.storage.base import VaultStores
from vault_vector_server.storage.memory import (
    MemoryFileStore,
    MemoryVectorIdStore,
    MemoryVectorIndex,
)
from vault_vector_server.sync.file_sync import FileSync
from vault_vector_server.sync.saga import VaultSync
from vault_vector_server.sync.vector_sync import VectorSync
from vault_vector_server.vault.models import VaultFile

TENANT = "vault-1"

NOTE_CONTENT = (
    "# Gardening\n"
    "Notes about growing vegetables in a small backyard plot.\n"
    "## Tomatoes\n"
    "Tomatoes need full sun and regular watering through summer.\n"
    "## Peppers\n"
    "Peppers like warm soil and should be planted after the last frost.\n"
    "### Chili\n"
    "Chili varieties can be grown in pots on a sunny balcony.\n"
)


class FakeEmbedder:
    """
    Deterministic embedder. Fails on the ``fail_on``-th call (1-based) or
    whenever the text contains one of ``fail_texts``.
    """

    def __init__(self, fail_on: Optional[int] = None, dim: int = 8) -> None:
        self.fail_on = fail_on
        self.fail_texts: Set[str] = set()
        self.dim = dim
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise EmbeddingError("Embedding generation failed: HTTPStatusError")
        if any(marker in text for marker in self.fail_texts):
            raise EmbeddingError("Embedding generation failed: HTTPStatusError")

        digest = hashlib.md5(text.encode("utf-8")).digest()
        return [float(b) + 1.0 for b in digest[: self.dim]]


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def stores():
    return VaultStores(
        files=MemoryFileStore(),
        vector_ids=MemoryVectorIdStore(),
        index=MemoryVectorIndex(),
    )


@pytest.fixture
def vector_sync(stores, embedder):
    return VectorSync(
        tenant_key=TENANT,
        embedder=embedder,
        index=stores.index,
        vector_ids=stores.vector_ids,
        min_viable_content_length=15,
        top_k=20,
    )


@pytest.fixture
def file_sync(stores):
    return FileSync(TENANT, stores.files)


@pytest.fixture
def vault_sync(vector_sync, file_sync):
    return VaultSync(vector_sync, file_sync)


def make_file(path="Garden/Vegetables.md", content=NOTE_CONTENT, file_type="note", mtime=1700000000000):
    basename = path.rsplit("/", 1)[-1].rsplit(".", 1)[0]
    return VaultFile(
        path=path,
        basename=basename,
        modified_time=mtime,
        file_type=file_type,
        content=content,
    )
