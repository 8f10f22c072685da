"""
Pytest configuration and fixtures for merge batcher tests.
"""
import os
import sqlite3
from unittest.mock import MagicMock

import pytest

from merge_batcher.executors.base import StatementExecutor


# Define test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "core: tests that don't require database connections"
    )
    config.addinivalue_line(
        "markers", "db: tests that run against an in-process database"
    )
    config.addinivalue_line(
        "markers", "postgres: tests that require PostgreSQL database connections"
    )


# PostgreSQL connection check
def postgres_connection_params():
    """Connection parameters taken from the standard libpq environment variables."""
    return {
        "host": os.environ.get("PGHOST", "localhost"),
        "port": os.environ.get("PGPORT", "5432"),
        "user": os.environ.get("PGUSER", "postgres"),
        "dbname": os.environ.get("PGDATABASE", "postgres"),
        "password": os.environ.get("PGPASSWORD", ""),
        "connect_timeout": 5,
    }


def has_postgres_connection():
    """Check if PostgreSQL connection is available."""
    # Check for required environment variables
    required_vars = ["PGHOST", "PGPORT", "PGUSER", "PGDATABASE"]
    for var in required_vars:
        if not os.environ.get(var):
            return False

    try:
        import psycopg2
        conn = psycopg2.connect(**postgres_connection_params())
        conn.close()
        return True
    except Exception:
        return False


# Skip database tests if connection not available
def pytest_collection_modifyitems(config, items):
    """Skip tests based on markers and available connections."""
    skip_postgres = pytest.mark.skip(reason="PostgreSQL connection not available")

    for item in items:
        if "postgres" in item.keywords and not has_postgres_connection():
            item.add_marker(skip_postgres)


@pytest.fixture
def mock_executor():
    """Executor mock reporting one affected row per call."""
    executor = MagicMock(spec=StatementExecutor)
    executor.execute_non_query.return_value = 1
    return executor


@pytest.fixture
def sqlite_connection():
    """In-memory SQLite database with an ``items`` table."""
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT, qty INTEGER)")
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def postgres_params():
    """PostgreSQL connection parameters from the environment."""
    return postgres_connection_params()
