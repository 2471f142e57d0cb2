#!/usr/bin/env python3
"""
Delete abuse reports whose retention deadline (purge_at) has passed.

Reads the database URL from .env:
    ADMIRER_DATABASE_URL   — async SQLAlchemy DSN (required)

Usage:
    python -m scripts.purge_reports
    python -m scripts.purge_reports --before 2026-09-01T00:00:00+00:00
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import datetime
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "admirer"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.safety.service import purge_expired_reports
from shared.database.postgres import get_async_engine


async def main(before: datetime | None) -> None:
    db_url = os.environ.get("ADMIRER_DATABASE_URL")
    if not db_url:
        print("Error: ADMIRER_DATABASE_URL must be set in .env")
        sys.exit(1)

    engine = get_async_engine(db_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        purged = await purge_expired_reports(session, before)
    await engine.dispose()
    print(f"Purged {purged} expired report(s).")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--before",
        type=datetime.fromisoformat,
        default=None,
        help="Purge reports due before this ISO timestamp (default: now)",
    )
    args = parser.parse_args()
    asyncio.run(main(args.before))
