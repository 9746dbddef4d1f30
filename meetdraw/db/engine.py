from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from .utils import resolve_sqlite_url

# Get DB url
load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)
# Seconds a SQLite writer waits for the database lock; racing draws queue here.
SQLITE_BUSY_TIMEOUT = float(os.getenv("DB_BUSY_TIMEOUT", "30"))


def make_engine(database_url: Optional[str] = None, echo: bool = False):
    """Create the engine for the lottery database.

    SQLite connections enforce foreign keys and may be shared across threads,
    since concurrent draws each open their own sessions from one engine.
    """
    url = database_url or DEFAULT_SQLITE_URL
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo, future=True, pool_pre_ping=True)

    engine = create_engine(
        url,
        echo=echo,
        future=True,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Draw results are read after their write transaction commits
        future=True,
    )
