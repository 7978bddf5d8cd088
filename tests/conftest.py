"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

from ldap_auth.config import LdapConfig, LdapConfigStore
from ldap_auth.db import create_db_engine, get_session_factory
from ldap_auth.env_settings import get_env

from .support.directory import MockDirectory, hitchhiker_config


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Set default values of environment variables for testing."""
    monkeypatch.setenv("LDAPAUTH_SECRET_KEY", "some-test-secret")
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    get_env.cache_clear()
    get_session_factory.cache_clear()
    yield
    get_env.cache_clear()
    get_session_factory.cache_clear()


@pytest.fixture
def directory() -> MockDirectory:
    directory = MockDirectory()
    directory.load_hitchhiker()
    return directory


@pytest.fixture
def config() -> LdapConfig:
    return hitchhiker_config()


@pytest.fixture
def session_factory(tmp_path: Path) -> sessionmaker:
    engine = create_db_engine(f"sqlite:///{(tmp_path / 'store.db').as_posix()}")
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def store(session_factory: sessionmaker) -> LdapConfigStore:
    return LdapConfigStore(session_factory)
