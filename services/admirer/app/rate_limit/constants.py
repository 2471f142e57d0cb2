"""
Rate limiting — per-action budgets.

Budgets are fixed in code; users cannot change them.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

_MINUTE_MS = 60_000
_HOUR_MS = 60 * _MINUTE_MS


class Action(str, enum.Enum):
    SYNC_IDENTITY = "syncIdentity"
    CLAIM_HANDLE = "claimHandle"
    ACCEPT_POLICIES = "acceptPolicies"
    ADD_ADMIRATION = "addAdmiration"
    REPORT_USER = "reportUser"
    BLOCK_USER = "blockUser"
    UNBLOCK_USER = "unblockUser"
    DELETE_ACCOUNT = "deleteAccount"
    GET_DASHBOARD = "getDashboard"


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    limit: int
    window_ms: int


ACTION_LIMITS: dict[Action, RateLimitRule] = {
    Action.SYNC_IDENTITY: RateLimitRule(limit=20, window_ms=10 * _MINUTE_MS),
    Action.CLAIM_HANDLE: RateLimitRule(limit=20, window_ms=10 * _MINUTE_MS),
    Action.ACCEPT_POLICIES: RateLimitRule(limit=10, window_ms=10 * _MINUTE_MS),
    Action.ADD_ADMIRATION: RateLimitRule(limit=20, window_ms=_HOUR_MS),
    Action.REPORT_USER: RateLimitRule(limit=10, window_ms=_HOUR_MS),
    Action.BLOCK_USER: RateLimitRule(limit=30, window_ms=_HOUR_MS),
    Action.UNBLOCK_USER: RateLimitRule(limit=30, window_ms=_HOUR_MS),
    Action.DELETE_ACCOUNT: RateLimitRule(limit=3, window_ms=_HOUR_MS),
    Action.GET_DASHBOARD: RateLimitRule(limit=120, window_ms=10 * _MINUTE_MS),
}
