"""Logging setup for the LDAP authentication service.

Log files live in `log_dir` (``data/logs`` by default, relative to CWD) and
are rotated at midnight by TimedRotatingFileHandler.

- Retention: log_retention_days (30 by default).
- Level: LOG_LEVEL (INFO by default).
"""
from __future__ import annotations

import glob
import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOG_FILE = "ldap_auth.log"

# Handlers installed by us, removed again on reconfiguration.
_file_handler: logging.Handler | None = None
_console_handler: logging.Handler | None = None


def _ensure_log_dir(log_dir: str) -> str:
    path = os.path.abspath(log_dir or os.path.join("data", "logs"))
    os.makedirs(path, exist_ok=True)
    return path


def _parse_level(level: str) -> tuple[str, int]:
    level_str = (level or "INFO").strip().upper()
    if level_str not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level_str = "INFO"
    return level_str, getattr(logging, level_str, logging.INFO)


def setup_logging(
    level: str = "INFO",
    retention_days: int = 30,
    log_dir: str = "data/logs",
    *,
    to_file: bool = True,
) -> None:
    """Configure the root logger.

    - File handler: daily rotation, `retention_days` files kept.
    - Console handler: for container stdout.

    Calling it again replaces the handlers installed by the previous call.
    """
    global _file_handler, _console_handler

    level_str, log_level = _parse_level(level)
    retention_days = max(1, min(365, int(retention_days or 30)))

    root = logging.getLogger()

    if _file_handler and _file_handler in root.handlers:
        root.removeHandler(_file_handler)
        _file_handler.close()
    _file_handler = None
    if _console_handler and _console_handler in root.handlers:
        root.removeHandler(_console_handler)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)

    if to_file:
        path = _ensure_log_dir(log_dir)
        fh = TimedRotatingFileHandler(
            os.path.join(path, _LOG_FILE),
            when="midnight",
            interval=1,
            backupCount=retention_days,
            encoding="utf-8",
            utc=True,
        )
        fh.suffix = "%Y-%m-%d"
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)
        _file_handler = fh
        _cleanup_old_logs(path, retention_days)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    root.addHandler(ch)
    _console_handler = ch

    root.setLevel(log_level)

    # ldap3 has its own logging switch; keep its protocol dumps out of our logs.
    logging.getLogger("ldap3").setLevel(max(log_level, logging.WARNING))
    logging.getLogger("uvicorn.access").setLevel(max(log_level, logging.WARNING))

    logging.getLogger("ldap_auth").info(
        "Logging configured: level=%s, retention=%d days, file=%s",
        level_str, retention_days, "on" if to_file else "off",
    )


def _cleanup_old_logs(log_dir: str, retention_days: int) -> None:
    """Remove rotated log files older than retention_days."""
    cutoff = time.time() - (retention_days * 86400)
    for f in glob.glob(os.path.join(log_dir, _LOG_FILE + ".*")):
        try:
            if os.path.getmtime(f) < cutoff:
                os.remove(f)
        except OSError:
            continue
