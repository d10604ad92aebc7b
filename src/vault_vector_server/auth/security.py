"""
API Key Verification

Every vault request carries two opaque headers:

- ``X-Api-Key``: a credential that must be one of the configured keys
- ``X-Vault-Key``: the tenant key that scopes all storage

This module checks the credential and produces a validated
`TenantContext` for downstream routes.
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from ..config import settings
from ..tenants import InvalidTenantError, TenantContext, resolve_tenant

logger = logging.getLogger("vault.auth")


API_KEY_HEADER = "x-api-key"
VAULT_KEY_HEADER = "x-vault-key"


def is_authorized(api_key: Optional[str]) -> bool:
    """
    Check an API key against the configured keys in constant time.
    """
    if not api_key:
        return False

    return any(
        hmac.compare_digest(api_key.encode("utf-8"), known.encode("utf-8"))
        for known in settings.api_keys
    )


def require_vault(
    api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
    vault_key: Optional[str] = Header(None, alias=VAULT_KEY_HEADER),
) -> TenantContext:
    """
    FastAPI dependency enforcing the API key and resolving the tenant.

    Raises
    ------
    HTTPException(401) for a missing or unknown API key.
    HTTPException(400) for a missing or malformed vault key.
    """
    if not is_authorized(api_key):
        logger.warning("Rejected request with missing or unknown API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    try:
        return resolve_tenant(vault_key or "")
    except InvalidTenantError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )
