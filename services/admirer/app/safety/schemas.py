"""
Safety domain — Pydantic V2 request/response schemas.

``reason`` is accepted as a plain string so an unknown value is reported
with the domain's own message rather than a 422.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ReportRequest(_Base):
    target_handle: str = Field(max_length=64)
    reason: str = Field(max_length=32)
    # Longer text is truncated server-side
    details: str | None = Field(default=None, max_length=10_000)


class ReportResponse(BaseModel):
    ok: bool = True
    report_id: str


class BlockRequest(_Base):
    target_handle: str = Field(max_length=64)


class BlockResponse(BaseModel):
    ok: bool = True
    blocked_uid: str
    blocked_handle: str


class OkResponse(BaseModel):
    ok: bool = True
