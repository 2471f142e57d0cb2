"""
Admiration domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AddAdmirationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    # Grammar is checked after normalization ("@Alice" → "alice")
    to_handle: str = Field(max_length=64)


class AddAdmirationResponse(BaseModel):
    ok: bool = True
    matched: bool
    to_handle: str
