import os
from pathlib import Path
from typing import Any, Dict, Generator

from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./worldcup.db")


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def is_memory(url: str) -> bool:
    return is_sqlite(url) and (":memory:" in url or url.rstrip("/") == "sqlite:")


def engine_options(url: str) -> Dict[str, Any]:
    """
    create_engine() keyword arguments for a database URL.

    SQLite: writers wait DATABASE_TIMEOUT seconds for the file lock instead of
    failing at once; an in-memory database is pinned to one connection so every
    session sees the same tables.
    Server databases: stale pooled connections are checked before use, since a
    tournament may sit idle between two picks for a long time.
    """
    options: Dict[str, Any] = {"echo": os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")}
    if is_sqlite(url):
        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": float(os.getenv("DATABASE_TIMEOUT", "30")),
        }
        if is_memory(url):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


def _sqlite_pragmas(dbapi_connection, connection_record) -> None:
    # Match rows point at items and tournaments; SQLite ignores FKs unless asked
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str) -> Engine:
    if is_sqlite(url) and not is_memory(url):
        db_path = url.replace("sqlite:///", "", 1)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    new_engine = create_engine(url, **engine_options(url))
    if is_sqlite(url):
        event.listen(new_engine, "connect", _sqlite_pragmas)
    return new_engine


engine: Engine = make_engine(DATABASE_URL)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from worldcup.models.item import WorldCupItem  # noqa: F401
    from worldcup.models.match import Match  # noqa: F401
    from worldcup.models.tournament import Tournament  # noqa: F401
    from worldcup.models.worldcup import WorldCup  # noqa: F401

    SQLModel.metadata.create_all(engine)
