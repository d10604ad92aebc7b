"""
Query Routes

Semantic search over the embedded vault. A query is either free text
(embedded server-side) or a ready-made vector, optionally narrowed to a
file type and to section chunks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from .dependencies import get_vault_sync
from .models import MatchesResponse, QueryRequest
from ..sync.saga import VaultSync

router = APIRouter(prefix="/api", tags=["query"])


@router.post(
    "/query",
    response_model=MatchesResponse,
    summary="Vector-based semantic search",
    status_code=status.HTTP_200_OK,
)
async def query(
    req: QueryRequest,
    vault: Annotated[VaultSync, Depends(get_vault_sync)],
) -> MatchesResponse:
    """
    Return metadata of the best matching chunks, ranked by the vector index.

    Index failures propagate to the global exception handler (500).
    """
    if req.text is not None:
        matches = await vault.vectors.get_query_matches(
            req.text,
            file_type=req.type,
            is_section=req.is_section,
        )
    else:
        matches = await vault.vectors.get_vector_matches(
            req.vector,
            file_type=req.type,
            is_section=req.is_section,
        )

    return MatchesResponse(data=matches)
