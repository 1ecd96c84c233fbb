import os
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from ocrify.config.settings import Settings
from ocrify.database.connection import close_pool, get_connection, init_pool
from ocrify.database.schema import apply_schema
from ocrify.storage.postgres_store import PostgresStore


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "ocrify_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            apply_schema(conn)
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[str], None, None]:
    """Queue positions appended here are deleted with their file records."""
    positions: list[str] = []
    yield positions
    if not positions:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "DELETE FROM file_records WHERE queue_position = ANY(%s)", (positions,)
            )
            cur.execute(
                "DELETE FROM queue_entries WHERE queue_position = ANY(%s)", (positions,)
            )
        conn.commit()


@pytest.fixture
def pg_store(integration_pool: None) -> PostgresStore:
    return PostgresStore()


@pytest.fixture
def queue_position(pg_store: PostgresStore, integration_cleanup: list[str]) -> str:
    position = pg_store.allocate_queue_entry().queue_position
    integration_cleanup.append(position)
    return position
