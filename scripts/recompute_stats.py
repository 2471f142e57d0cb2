#!/usr/bin/env python3
"""
Rebuild every user's admiration counters from the edges and matches.

Run after a bulk import or manual data repair.  Safe to run at any time;
each user is recomputed and committed on its own.

Reads the database URL from .env:
    ADMIRER_DATABASE_URL   — async SQLAlchemy DSN (required)

Usage:
    python -m scripts.recompute_stats
"""
from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "admirer"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.admiration.service import list_known_uids, recompute_stats
from shared.database.postgres import get_async_engine


async def main() -> None:
    db_url = os.environ.get("ADMIRER_DATABASE_URL")
    if not db_url:
        print("Error: ADMIRER_DATABASE_URL must be set in .env")
        sys.exit(1)

    engine = get_async_engine(db_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        uids = await list_known_uids(session)
        for uid in uids:
            await recompute_stats(session, uid)
            await session.commit()
    await engine.dispose()
    print(f"Recomputed stats for {len(uids)} user(s).")


if __name__ == "__main__":
    asyncio.run(main())
