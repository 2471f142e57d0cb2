"""
Account domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DeleteAccountRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Must be exactly "DELETE"; checked by the service for a readable error
    confirmation: str = Field(default="", max_length=32)


class DeleteAccountResponse(BaseModel):
    ok: bool = True
