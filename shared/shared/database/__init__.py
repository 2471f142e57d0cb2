from shared.database.postgres import (
    Base,
    chunked,
    delete_by_keys,
    get_async_engine,
    insert_ignore,
    primary_key_clause,
    primary_key_of,
)

__all__ = [
    "get_async_engine",
    "Base",
    "chunked",
    "delete_by_keys",
    "insert_ignore",
    "primary_key_clause",
    "primary_key_of",
]
