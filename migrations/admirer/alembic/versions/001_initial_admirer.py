"""Full admirer schema

Revision ID: 001
Revises:
Create Date: 2026-02-12

Tables created:
  - users               Profile record, consent fields
  - handle_index        handle → uid uniqueness index
  - external_id_index   provider account id → uid uniqueness index
  - stats               Derived incoming/outgoing/match counters
  - admiration_edges    Directed admirations, one per ordered pair
  - matches             Mirrored per-owner match records
  - blocks              Directed blocks, one per ordered pair
  - reports             Abuse reports with purge deadline
  - rate_limit_windows  Fixed-window counters per (action, uid)

No foreign keys: cross-table consistency is maintained by the service.
Enum columns are stored as VARCHAR (non-native enums).

Downgrade: drops all tables.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_UID = 128
_HANDLE = 15


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


# ─────────────────────────────────────────────────────────────────────────────
#  UPGRADE
# ─────────────────────────────────────────────────────────────────────────────

def upgrade() -> None:
    # ── 1. Identity ───────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("uid", sa.String(_UID), primary_key=True),
        sa.Column("handle", sa.String(_HANDLE), nullable=True),
        sa.Column("external_id", sa.String(_UID), nullable=True),
        sa.Column("auth_provider", sa.String(64), nullable=True),
        sa.Column("privacy_version", sa.String(32), nullable=True),
        sa.Column("terms_version", sa.String(32), nullable=True),
        _ts("consent_accepted_at", nullable=True),
        sa.Column("age_confirmed", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_table(
        "handle_index",
        sa.Column("handle", sa.String(_HANDLE), primary_key=True),
        sa.Column("uid", sa.String(_UID), nullable=False),
        _ts("updated_at"),
    )
    op.create_index("ix_handle_index_uid", "handle_index", ["uid"])
    op.create_table(
        "external_id_index",
        sa.Column("external_id", sa.String(_UID), primary_key=True),
        sa.Column("uid", sa.String(_UID), nullable=False),
        sa.Column("handle", sa.String(_HANDLE), nullable=True),
        _ts("updated_at"),
    )
    op.create_index("ix_external_id_index_uid", "external_id_index", ["uid"])
    op.create_table(
        "stats",
        sa.Column("uid", sa.String(_UID), primary_key=True),
        sa.Column("incoming_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("outgoing_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("match_count", sa.Integer, nullable=False, server_default="0"),
    )

    # ── 2. Admiration graph ───────────────────────────────────────────────────
    op.create_table(
        "admiration_edges",
        sa.Column("from_uid", sa.String(_UID), primary_key=True),
        sa.Column("to_uid", sa.String(_UID), primary_key=True),
        sa.Column("from_handle", sa.String(_HANDLE), nullable=False),
        sa.Column("to_handle", sa.String(_HANDLE), nullable=False),
        _ts("created_at"),
        sa.Column("revealed", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts("matched_at", nullable=True),
    )
    op.create_index("idx_admiration_edges_to_uid", "admiration_edges", ["to_uid"])
    op.create_index(
        "idx_admiration_edges_from_created", "admiration_edges", ["from_uid", "created_at"]
    )
    op.create_table(
        "matches",
        sa.Column("owner_uid", sa.String(_UID), primary_key=True),
        sa.Column("other_uid", sa.String(_UID), primary_key=True),
        sa.Column("other_handle", sa.String(_HANDLE), nullable=False),
        _ts("created_at"),
    )
    op.create_index("idx_matches_owner_created", "matches", ["owner_uid", "created_at"])
    op.create_index("idx_matches_other_uid", "matches", ["other_uid"])

    # ── 3. Safety ─────────────────────────────────────────────────────────────
    op.create_table(
        "blocks",
        sa.Column("blocker_uid", sa.String(_UID), primary_key=True),
        sa.Column("blocked_uid", sa.String(_UID), primary_key=True),
        sa.Column("blocker_handle", sa.String(_HANDLE), nullable=False),
        sa.Column("blocked_handle", sa.String(_HANDLE), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("idx_blocks_blocked_uid", "blocks", ["blocked_uid"])
    op.create_table(
        "reports",
        sa.Column("report_id", sa.String(32), primary_key=True),
        sa.Column("reporter_uid", sa.String(_UID), nullable=False),
        sa.Column("reporter_handle", sa.String(_HANDLE), nullable=False),
        sa.Column("reported_uid", sa.String(_UID), nullable=True),
        sa.Column("reported_handle", sa.String(32), nullable=False),
        sa.Column("reason", sa.String(13), nullable=False),
        sa.Column("details", sa.String(1000), nullable=False, server_default=""),
        sa.Column("status", sa.String(8), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("purge_at"),
        _ts("anonymized_at", nullable=True),
    )
    op.create_index("idx_reports_reporter_uid", "reports", ["reporter_uid"])
    op.create_index("idx_reports_reported_uid", "reports", ["reported_uid"])
    op.create_index("idx_reports_purge_at", "reports", ["purge_at"])

    # ── 4. Rate limiting ──────────────────────────────────────────────────────
    op.create_table(
        "rate_limit_windows",
        sa.Column("action", sa.String(64), primary_key=True),
        sa.Column("uid", sa.String(_UID), primary_key=True),
        sa.Column("window_start_ms", sa.BigInteger, nullable=False),
        sa.Column("count", sa.Integer, nullable=False),
        _ts("updated_at"),
    )
    op.create_index("idx_rate_limit_windows_uid", "rate_limit_windows", ["uid"])


# ─────────────────────────────────────────────────────────────────────────────
#  DOWNGRADE
# ─────────────────────────────────────────────────────────────────────────────

def downgrade() -> None:
    for table in (
        "rate_limit_windows",
        "reports",
        "blocks",
        "matches",
        "admiration_edges",
        "stats",
        "external_id_index",
        "handle_index",
        "users",
    ):
        op.drop_table(table)
