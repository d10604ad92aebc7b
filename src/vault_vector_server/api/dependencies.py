from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.security import require_vault
from ..config import settings
from ..db import get_async_session, sql_stores
from ..embeddings.embedder import Embedder
from ..storage.base import VaultStores
from ..storage.memory import get_memory_stores
from ..sync.file_sync import FileSync
from ..sync.saga import VaultSync
from ..sync.vector_sync import VectorSync
from ..tenants import TenantContext


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


def get_vault_stores(
    tenant: TenantContext = Depends(require_vault),
    session: AsyncSession = Depends(get_async_session),
) -> VaultStores:
    # Sessions connect lazily, the memory backend never touches it.
    if settings.storage_backend == "memory":
        return get_memory_stores(tenant.tenant_key)
    return sql_stores(session, tenant.tenant_key)


def get_vault_sync(
    tenant: TenantContext = Depends(require_vault),
    stores: VaultStores = Depends(get_vault_stores),
    embedder: Embedder = Depends(get_embedder),
) -> VaultSync:
    vectors = VectorSync(
        tenant_key=tenant.tenant_key,
        embedder=embedder,
        index=stores.index,
        vector_ids=stores.vector_ids,
    )
    files = FileSync(tenant.tenant_key, stores.files)
    return VaultSync(vectors, files)
