"""
Identity domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class SyncIdentityRequest(_Base):
    """Body for POST /identity/sync and POST /identity/claim.

    ``handle`` is optional: the session normally asserts it.  When given it
    must name the same account.
    """

    handle: str | None = Field(default=None, max_length=64)


class SyncIdentityResponse(BaseModel):
    ok: bool = True
    handle: str


class AcceptPoliciesResponse(BaseModel):
    ok: bool = True
    privacy_version: str
    terms_version: str
    accepted_at: datetime
