"""
Safety domain — SQLAlchemy ORM models.

Tables:
  blocks  — directed (blocker_uid → blocked_uid) block, upserted
  reports — abuse reports kept until purge_at; anonymized when the reported
            account is deleted
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.identity.constants import HANDLE_MAX_LENGTH
from app.identity.models import UID_LENGTH
from app.safety.constants import DETAILS_MAX_LENGTH, ReportReason, ReportStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _report_id() -> str:
    return uuid.uuid4().hex


class Block(Base):
    __tablename__ = "blocks"

    blocker_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    blocked_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), primary_key=True)
    blocker_handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=False)
    blocked_handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        sa.Index("idx_blocks_blocked_uid", "blocked_uid"),
    )


class Report(Base):
    __tablename__ = "reports"

    report_id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=_report_id)
    reporter_uid: Mapped[str] = mapped_column(sa.String(UID_LENGTH), nullable=False)
    reporter_handle: Mapped[str] = mapped_column(sa.String(HANDLE_MAX_LENGTH), nullable=False)
    # Nulled when the reported account is deleted
    reported_uid: Mapped[str | None] = mapped_column(sa.String(UID_LENGTH), nullable=True)
    reported_handle: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    reason: Mapped[ReportReason] = mapped_column(
        sa.Enum(ReportReason, name="report_reason", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    details: Mapped[str] = mapped_column(
        sa.String(DETAILS_MAX_LENGTH), nullable=False, default="", server_default=""
    )
    status: Mapped[ReportStatus] = mapped_column(
        sa.Enum(ReportStatus, name="report_status", native_enum=False,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReportStatus.OPEN,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    purge_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    anonymized_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        sa.Index("idx_reports_reporter_uid", "reporter_uid"),
        sa.Index("idx_reports_reported_uid", "reported_uid"),
        sa.Index("idx_reports_purge_at", "purge_at"),
    )
