from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from ldap_auth.log_config import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _ours(kind: type) -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if type(h) is kind]


def test_setup_logging(tmp_path: Path):
    setup_logging(level="debug", log_dir=str(tmp_path))

    assert logging.getLogger().level == logging.DEBUG
    assert (tmp_path / "ldap_auth.log").exists()
    assert logging.getLogger("ldap3").level == logging.WARNING


def test_reconfigure_replaces_handlers(tmp_path: Path):
    setup_logging(log_dir=str(tmp_path))
    setup_logging(level="WARNING", log_dir=str(tmp_path))

    assert len(_ours(TimedRotatingFileHandler)) == 1
    assert len(_ours(logging.StreamHandler)) == 1
    assert logging.getLogger().level == logging.WARNING


def test_unknown_level(tmp_path: Path):
    setup_logging(level="chatty", to_file=False)

    assert logging.getLogger().level == logging.INFO
    assert _ours(TimedRotatingFileHandler) == []
    assert not (tmp_path / "ldap_auth.log").exists()


def test_old_logs_removed(tmp_path: Path):
    old = tmp_path / "ldap_auth.log.2001-01-01"
    recent = tmp_path / "ldap_auth.log.2999-01-01"
    old.write_text("old")
    recent.write_text("recent")
    ten_days_ago = time.time() - 10 * 86400
    os.utime(old, (ten_days_ago, ten_days_ago))

    setup_logging(retention_days=5, log_dir=str(tmp_path))

    assert not old.exists()
    assert recent.exists()
