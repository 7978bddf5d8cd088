import os
from functools import lru_cache
from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .env_settings import get_env


class Base(DeclarativeBase):
    pass


def _db_url() -> str:
    s = get_env()
    sqlite_path = (s.sqlite_path or "").strip() or "data/ldap_auth.db"
    p = Path(sqlite_path)
    if not p.is_absolute():
        p = (Path.cwd() / p).resolve()

    db_dir = str(p.parent)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    return f"sqlite:///{p.as_posix()}"


def create_db_engine(url: str) -> Engine:
    # Register the mapped tables before create_all runs.
    from . import models  # noqa: F401

    engine = create_engine(
        url,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragma)
    Base.metadata.create_all(bind=engine)
    return engine


def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Session factory for the database configured via SQLITE_PATH."""
    engine = create_db_engine(_db_url())
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
