"""
Index a local vault directory into the configured PostgreSQL stores.

Usage:
    python scripts/index_vault.py <tenant-key> <vault-dir>
"""
import asyncio
import os
import sys
from pathlib import Path

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from vault_vector_server.db import AsyncSessionLocal, create_tables, sql_stores
from vault_vector_server.embeddings.embedder import Embedder
from vault_vector_server.sync.file_sync import FileSync
from vault_vector_server.sync.saga import VaultSync
from vault_vector_server.sync.vector_sync import VectorSync
from vault_vector_server.tenants import resolve_tenant
from vault_vector_server.vault.models import VaultFile


async def main(tenant_key: str, vault_dir: Path):
    tenant = resolve_tenant(tenant_key)
    embedder = Embedder()

    print("Creating tables...")
    await create_tables()

    notes = sorted(vault_dir.rglob("*.md"))
    print(f"Found {len(notes)} notes.")

    failures = 0
    async with AsyncSessionLocal() as session:
        stores = sql_stores(session, tenant.tenant_key)
        vault = VaultSync(
            VectorSync(tenant.tenant_key, embedder, stores.index, stores.vector_ids),
            FileSync(tenant.tenant_key, stores.files),
        )

        for i, note in enumerate(notes):
            rel_path = note.relative_to(vault_dir).as_posix()
            print(f"Processing ({i+1}/{len(notes)}): {rel_path}")

            file = VaultFile(
                path=rel_path,
                basename=note.stem,
                modified_time=int(note.stat().st_mtime * 1000),
                file_type="note",
                content=note.read_text(encoding="utf-8"),
            )
            result = await vault.replace_file(file)
            if not result.ok:
                failures += 1
                print(f"  {result.error} ({result.failed_step.value})")
                continue

            print(f"  {len(result.batch.records)} embeddings created.")

    print(f"Done! {len(notes) - failures} indexed, {failures} failed.")

if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)
    asyncio.run(main(sys.argv[1], Path(sys.argv[2])))
