"""
Admiration domain — SQLAlchemy ORM models.

Tables:
  admiration_edges — directed (from_uid → to_uid) admiration; one per ordered pair
  matches          — mirrored per-owner match records, created on reciprocity

Both are only ever deleted by account deletion.
"""
from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.identity.constants import HANDLE_MAX_LENGTH
from app.identity.models import UID_LENGTH


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AdmirationEdge(Base):
    __tablename__ = "admiration_edges"

    from_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    to_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    from_handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=False)
    to_handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    # One-way: false → true when the reverse edge exists
    revealed: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False, server_default=sa.false()
    )
    matched_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        sa.Index("idx_admiration_edges_to_uid", "to_uid"),
        sa.Index("idx_admiration_edges_from_created", "from_uid", "created_at"),
    )


class Match(Base):
    __tablename__ = "matches"

    owner_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    other_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    other_handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        sa.Index("idx_matches_owner_created", "owner_uid", "created_at"),
        sa.Index("idx_matches_other_uid", "other_uid"),
    )
