"""SQLAlchemy engine factory for database connections.

This module provides the create_engine_from_config() function that creates
database engines based on environment configuration, supporting:
- PostgreSQL (via DATABASE_URL environment variable)
- SQLite file-based (via BARTERHUB_DB_PATH or default var/barterhub.db)
- SQLite in-memory (for testing, db_path=":memory:")
"""

import os
import json
from pathlib import Path
from typing import Optional, Union
from sqlalchemy import create_engine, Engine, event
from sqlalchemy.pool import StaticPool
import logging

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path("var/barterhub.db")


def create_engine_from_config(db_path: Optional[Union[str, Path]] = None) -> Engine:
    """
    Create SQLAlchemy engine from configuration.

    Automatically selects backend based on environment:
    - DATABASE_URL set → PostgreSQL
    - db_path=":memory:" → SQLite in-memory (for tests)
    - Otherwise → SQLite file-based

    Args:
        db_path: Optional explicit database path.
                 Use ":memory:" for in-memory SQLite (testing).
                 None uses environment or default.

    Returns:
        Configured SQLAlchemy Engine instance
    """
    database_url = os.environ.get("DATABASE_URL")

    if database_url and database_url.startswith("postgresql"):
        logger.info(f"Creating PostgreSQL engine: {database_url.split('@')[-1]}")  # Hide credentials

        return create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            json_serializer=json.dumps,
            json_deserializer=json.loads,
            echo=False,
        )

    if str(db_path) == ":memory:":
        # StaticPool keeps one connection; otherwise each connection gets a fresh empty database
        logger.info("Creating SQLite in-memory engine (testing mode)")

        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
            json_serializer=json.dumps,
            json_deserializer=json.loads,
            echo=False,
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # Priority: explicit parameter > environment variable > default
    if db_path is not None:
        sqlite_path = Path(db_path)
    else:
        env_path = os.environ.get("BARTERHUB_DB_PATH")
        if env_path and env_path != ":memory:":
            sqlite_path = Path(env_path)
        else:
            sqlite_path = DEFAULT_SQLITE_PATH

    sqlite_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Creating SQLite file engine: {sqlite_path}")

    engine = create_engine(
        f"sqlite:///{sqlite_path}",
        connect_args={'check_same_thread': False},
        json_serializer=json.dumps,
        json_deserializer=json.loads,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def get_database_url(db_path: Optional[Union[str, Path]] = None) -> str:
    """
    Get the database URL that create_engine_from_config() would use.

    Returns:
        Database URL string
    """
    database_url = os.environ.get("DATABASE_URL")
    if database_url and database_url.startswith("postgresql"):
        return database_url

    if db_path is not None:
        return "sqlite:///:memory:" if str(db_path) == ":memory:" else f"sqlite:///{db_path}"

    env_path = os.environ.get("BARTERHUB_DB_PATH")
    if env_path == ":memory:":
        return "sqlite:///:memory:"
    if env_path:
        return f"sqlite:///{env_path}"
    return f"sqlite:///{DEFAULT_SQLITE_PATH}"
