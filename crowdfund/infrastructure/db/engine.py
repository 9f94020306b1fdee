from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine


@lru_cache(maxsize=4)
def get_engine(dsn: str, *, connect_timeout_seconds: int = 10, pool_timeout_seconds: float = 10.0):
    return create_engine(
        dsn,
        future=True,
        pool_pre_ping=True,
        pool_timeout=pool_timeout_seconds,
        connect_args={"connect_timeout": connect_timeout_seconds},
    )
