from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from labintake.config.settings import Settings

_pool: ConnectionPool | None = None


def build_conninfo(settings: Settings, connect_timeout: int = 5) -> str:
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
        application_name="labintake",
        connect_timeout=connect_timeout,
    )


def init_pool(settings: Settings) -> None:
    """Open the global pool; connections are autocommit and return dict rows."""
    global _pool  # noqa: PLW0603
    # one run reads the registry once
    _pool = ConnectionPool(
        build_conninfo(settings),
        min_size=1,
        max_size=2,
        timeout=10,
        kwargs={"autocommit": True, "row_factory": dict_row},
        open=True,
    )


def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a pooled connection. Only registry reads go through it."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn
