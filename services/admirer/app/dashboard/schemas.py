"""
Dashboard domain — Pydantic V2 response schemas.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class MatchItem(BaseModel):
    uid: str
    handle: str
    created_at: datetime


class SentAdmirationItem(BaseModel):
    to_uid: str
    to_handle: str
    revealed: bool
    created_at: datetime
    matched_at: datetime | None = None


class BlockedUserItem(BaseModel):
    uid: str
    handle: str
    created_at: datetime


class DashboardResponse(BaseModel):
    handle: str | None
    incoming_count: int
    outgoing_count: int
    match_count: int
    max_outgoing: int
    matches: list[MatchItem]
    sent_admirations: list[SentAdmirationItem]
    blocked_users: list[BlockedUserItem]
    consent_required: bool
