"""
Safety domain — enums and limits.
"""
from __future__ import annotations

import enum


class ReportReason(str, enum.Enum):
    HARASSMENT = "harassment"
    IMPERSONATION = "impersonation"
    SPAM = "spam"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    OPEN = "open"
    REVIEWED = "reviewed"
    CLOSED = "closed"


# Free-text details are truncated, not rejected
DETAILS_MAX_LENGTH: int = 1000

# Stored in place of the handle of a reported account that was deleted
DELETED_HANDLE_PLACEHOLDER: str = "[deleted]"

# Rows per DELETE when purging expired reports
PURGE_BATCH_SIZE: int = 400
