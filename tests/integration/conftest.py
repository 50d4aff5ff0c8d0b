import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from labintake.config.settings import Settings
from labintake.database.connection import build_conninfo, close_pool, get_connection, init_pool


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "labintake_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    # probe first: the pool itself would keep retrying in the background
    try:
        psycopg.connect(build_conninfo(test_settings, connect_timeout=3)).close()
    except psycopg.Error as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    init_pool(test_settings)
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS clients (
                    id TEXT PRIMARY KEY,
                    full_name TEXT NOT NULL,
                    date_of_birth DATE,
                    gender TEXT,
                    user_id TEXT,
                    created_at TIMESTAMP DEFAULT now()
                )
                """
            )
        conn.commit()
        yield conn


@pytest.fixture
def seed_clients(db_conn: psycopg.Connection[Any]) -> Generator[dict[str, str], None, None]:
    """Insert two clients owned by a fresh practitioner id; yields name -> id."""
    owner = f"user-{uuid.uuid4().hex[:8]}"
    other_owner = f"user-{uuid.uuid4().hex[:8]}"
    rows = {
        "Jane Doe": (str(uuid.uuid4()), "1985-03-12", "female", owner),
        "John Smith": (str(uuid.uuid4()), None, "male", owner),
        "Ana Ruiz": (str(uuid.uuid4()), "1990-07-01", "female", other_owner),
    }
    with db_conn.cursor() as cur:
        for name, (client_id, dob, gender, user_id) in rows.items():
            cur.execute(
                """
                INSERT INTO clients (id, full_name, date_of_birth, gender, user_id)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (client_id, name, dob, gender, user_id),
            )
    db_conn.commit()
    ids = {name: row[0] for name, row in rows.items()}
    ids["_owner"] = owner
    try:
        yield ids
    finally:
        with db_conn.cursor() as cur:
            cur.execute(
                "DELETE FROM clients WHERE id = ANY(%s)",
                ([row[0] for row in rows.values()],),
            )
        db_conn.commit()
