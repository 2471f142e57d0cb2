"""
Identity domain — SQLAlchemy ORM models.

Tables:
  users              — profile record, owned by the identity store
  handle_index       — handle → uid uniqueness index
  external_id_index  — provider account id → uid uniqueness index
  stats              — derived admiration counters per user

The store has no cross-table constraints; both indexes are written and
cleaned up in the same transaction as the owning user record.
"""
from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.identity.constants import HANDLE_MAX_LENGTH

UID_LENGTH = 128


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    handle: Mapped[str | None] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=True)
    external_id: Mapped[str | None] = mapped_column(sa.String(UID_LENGTH), nullable=True)
    auth_provider: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)

    # Consent (null until the user accepts the policies)
    privacy_version: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    terms_version: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    consent_accepted_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    age_confirmed: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False, server_default=sa.false()
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )


class HandleIndex(Base):
    __tablename__ = "handle_index"

    handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), primary_key=True)
    uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )


class ExternalIdIndex(Base):
    __tablename__ = "external_id_index"

    external_id: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), nullable=False, index=True)
    # Last handle seen for this provider account; lets a returning session
    # whose token lacks the handle be recognised.
    handle: Mapped[str | None] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )


class Stats(Base):
    __tablename__ = "stats"

    uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    incoming_count: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default="0"
    )
    outgoing_count: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default="0"
    )
    match_count: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default="0"
    )
