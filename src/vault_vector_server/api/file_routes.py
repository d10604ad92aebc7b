"""
File Routes

This module exposes the endpoints the vault client uses to keep the remote
mirror in sync:
- Listing file records
- Adding or replacing a file (record + embeddings)
- Deleting one file or every file of the vault

Each mutation runs a saga (see ``sync.saga``). A failed step is reported
with HTTP 500 and the name of the step, so the client can repeat the
request.
"""

from typing import Annotated, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from .dependencies import get_vault_sync
from .models import FilesResponse, SyncErrorResponse, SyncResponse
from ..sync.saga import SagaResult, VaultSync
from ..vault.models import VaultFile

router = APIRouter(prefix="/api/files", tags=["files"])


# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------

def _saga_error(result: SagaResult) -> JSONResponse:
    body = SyncErrorResponse(
        error=result.error or "File synchronization failed",
        path=result.path,
        failed_step=result.failed_step.value if result.failed_step else None,
        steps=result.steps,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.to_json(),
    )


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@router.get(
    "",
    response_model=FilesResponse,
    summary="List file records of the vault",
)
async def list_files(
    vault: Annotated[VaultSync, Depends(get_vault_sync)],
) -> FilesResponse:
    files = await vault.files.get_files()
    return FilesResponse(data=files)


@router.post(
    "",
    response_model=SyncResponse,
    summary="Add or replace a file",
    responses={500: {"model": SyncErrorResponse}},
)
async def replace_file(
    file: VaultFile,
    vault: Annotated[VaultSync, Depends(get_vault_sync)],
) -> Union[SyncResponse, JSONResponse]:
    """
    Replace a file and its embeddings.

    Workflow
    --------
    1. Delete the file's existing embeddings.
    2. Delete the file record.
    3. Embed and index the new content.
    4. Store the new file record.
    """
    result = await vault.replace_file(file)
    if not result.ok:
        return _saga_error(result)

    count = len(result.batch.records) if result.batch else 0
    return SyncResponse(
        message=f"{count} embeddings created.",
        count=count,
        steps=result.steps,
        failed_chunks=result.batch.failed if result.batch else [],
    )


@router.delete(
    "",
    response_model=SyncResponse,
    summary="Delete a file and its embeddings",
    responses={500: {"model": SyncErrorResponse}},
)
async def delete_file(
    file: VaultFile,
    vault: Annotated[VaultSync, Depends(get_vault_sync)],
) -> Union[SyncResponse, JSONResponse]:
    result = await vault.remove_file(file)
    if not result.ok:
        return _saga_error(result)

    return SyncResponse(message="File deleted.", steps=result.steps)


@router.delete(
    "/all",
    response_model=SyncResponse,
    summary="Delete every file of the vault",
    responses={500: {"model": SyncErrorResponse}},
)
async def delete_all_files(
    vault: Annotated[VaultSync, Depends(get_vault_sync)],
) -> Union[SyncResponse, JSONResponse]:
    result = await vault.remove_all_files()

    if result.failure is not None:
        body = SyncErrorResponse(
            error=result.failure.error or "File synchronization failed",
            path=result.failure.path,
            failed_step=result.failure.failed_step.value if result.failure.failed_step else None,
            steps=result.failure.steps,
            removed=result.removed,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.to_json(),
        )

    return SyncResponse(
        message=f"{len(result.removed)} files deleted.",
        count=len(result.removed),
    )
