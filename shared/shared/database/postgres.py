import os
import ssl
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import Any, TypeVar

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()

T = TypeVar("T")


def _build_ssl_connect_args() -> dict[str, Any]:
    """Return asyncpg ``connect_args`` for SSL when DATABASE_SSL is set."""
    mode = os.environ.get("DATABASE_SSL", "").lower()
    if not mode or mode == "disable":
        return {}

    cert_path = os.environ.get("RDS_SSL_CERT", "")
    if cert_path and Path(cert_path).exists():
        ctx = ssl.create_default_context(cafile=cert_path)
        return {"connect_args": {"ssl": ctx}}

    # Fall back to simple 'require' (encrypted, no cert verification)
    return {"connect_args": {"ssl": "require"}}


def get_async_engine(database_url: str, **kwargs: Any) -> Any:
    # SQLite (tests, local tooling) gets neither SSL nor pool sizing.
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, **kwargs)

    ssl_kwargs = _build_ssl_connect_args()
    merged = {**ssl_kwargs, **kwargs}
    merged.setdefault("pool_size", 5)
    merged.setdefault("max_overflow", 10)
    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=3600,
        **merged,
    )


# ── Keyed-record helpers ──────────────────────────────────────────────────────
#
# Tables are used as keyed document collections: rows are addressed by their
# primary key, created idempotently and deleted unconditionally.


async def insert_ignore(session: AsyncSession, model: Any, values: dict[str, Any]) -> None:
    """INSERT the row unless one with the same primary key already exists.

    Never touches an existing row, so it is safe for zero-initialising
    counters that may already hold data.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values).on_conflict_do_nothing()
    else:
        raise NotImplementedError(f"insert_ignore is not supported on {dialect}")
    await session.execute(stmt)


def primary_key_of(instance: Any) -> tuple[Any, ...]:
    """Primary-key tuple of a persistent ORM instance, in mapper order."""
    return tuple(sa.inspect(instance).identity)


def primary_key_clause(model: Any, key: Sequence[Any]) -> sa.ColumnElement[bool]:
    columns = sa.inspect(model).primary_key
    if len(columns) != len(key):
        raise ValueError(f"{model.__name__} key needs {len(columns)} parts, got {len(key)}")
    return sa.and_(*(col == value for col, value in zip(columns, key)))


async def delete_by_keys(
    session: AsyncSession, model: Any, keys: Iterable[Sequence[Any]]
) -> int:
    """Delete every row whose primary key is in ``keys``; missing rows are skipped."""
    clauses = [primary_key_clause(model, key) for key in keys]
    if not clauses:
        return 0
    result = await session.execute(sa.delete(model).where(sa.or_(*clauses)))
    return result.rowcount or 0


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]
