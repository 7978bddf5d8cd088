from __future__ import annotations

from fastapi import HTTPException, Request, status

from .auth.engine import ConnectionFactory
from .config import LdapConfigStore
from .session import read_session

SESSION_COOKIE = "ldap_auth_session"
SESSION_MAX_AGE = 8 * 60 * 60


def get_store() -> LdapConfigStore:
    return LdapConfigStore()


def get_connection_factory() -> ConnectionFactory | None:
    """Connection factory for directory access; None means ldap3 over the network."""
    return None


def get_current_user(request: Request) -> dict:
    token = request.cookies.get(SESSION_COOKIE, "")
    data = read_session(token, SESSION_MAX_AGE) if token else None
    if not data:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return data


def require_settings_access(request: Request) -> dict:
    user = get_current_user(request)
    if not user.get("settings", False):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user
