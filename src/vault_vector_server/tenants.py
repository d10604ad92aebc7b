"""
Multi-Tenant Support

Every vault is identified by an opaque tenant key sent with each request.
All storage is namespaced by that key: stores are built per tenant and
chunk ids hash the key in.

Security
--------
- Only alphanumeric characters, hyphens, and underscores allowed
- Maximum 64 characters
- The key is never interpreted beyond validation
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, ValidationError, field_validator


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

TENANT_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class InvalidTenantError(ValueError):
    """Raised when a tenant key is missing or malformed."""


# ---------------------------------------------------------------------
# Tenant Context Model
# ---------------------------------------------------------------------

class TenantContext(BaseModel):
    """
    Represents one isolated vault.

    This is derived from the vault key request header.
    """

    tenant_key: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Unique identifier for the vault.",
    )

    @field_validator("tenant_key", mode="before")
    @classmethod
    def validate_tenant_key(cls, v: str) -> str:
        """
        Validate the tenant key so it can safely prefix storage keys.
        """
        if not v or not isinstance(v, str):
            raise InvalidTenantError("tenant key is required")

        v = v.strip()

        if not TENANT_KEY_PATTERN.match(v):
            raise InvalidTenantError(
                f"Invalid tenant key '{v}': must be 1-64 alphanumeric chars, hyphens, or underscores"
            )

        return v


def resolve_tenant(tenant_key: str) -> TenantContext:
    """
    Validate a raw tenant key.

    Raises
    ------
    InvalidTenantError
        If the key is missing or malformed.
    """
    try:
        return TenantContext(tenant_key=tenant_key)
    except ValidationError as exc:
        raise InvalidTenantError(exc.errors()[0]["msg"]) from exc
