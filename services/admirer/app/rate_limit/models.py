"""
Rate limiting — SQLAlchemy ORM model.

One fixed-window counter per (action, uid).
"""
from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.identity.models import UID_LENGTH


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RateLimitWindow(Base):
    __tablename__ = "rate_limit_windows"

    action: Mapped[str] = mapped_column(sa.String(64), primary_key=True)
    uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    window_start_ms: Mapped[int] = mapped_column(sa.BigInteger, nullable=False)
    count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        sa.Index("idx_rate_limit_windows_uid", "uid"),
    )
