from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..auth import LdapAuthenticationHandler
from ..auth.engine import ConnectionFactory
from ..config import LdapConfigStore
from ..deps import SESSION_COOKIE, SESSION_MAX_AGE, get_connection_factory, get_store
from ..env_settings import get_env
from ..exceptions import LdapAuthError
from ..session import create_session

router = APIRouter(prefix="/api/auth")
log = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str = Field(default="", max_length=256)
    password: str = Field(default="")


def _bootstrap_login(username: str, password: str) -> dict | None:
    env = get_env()
    if not env.bootstrap_admin_password or username != env.bootstrap_admin_user:
        return None
    if not hmac.compare_digest(password.encode("utf-8"), env.bootstrap_admin_password.encode("utf-8")):
        return None
    return {"u": username, "dn": username, "auth": "local", "settings": True, "groups": []}


def _ldap_login(
    username: str,
    password: str,
    store: LdapConfigStore,
    connection_factory: ConnectionFactory | None,
) -> dict | None:
    try:
        result = LdapAuthenticationHandler(store, connection_factory).authenticate(username, password)
    except LdapAuthError as e:
        log.info("ldap login for %s failed: %s", username, type(e).__name__)
        return None
    if result.user is None:
        return None
    settings_group = get_env().settings_group.strip()
    groups = sorted(result.groups)
    return {
        "u": result.user.name,
        "dn": result.user.display_name,
        "auth": "ldap",
        "settings": bool(settings_group) and settings_group in result.groups,
        "groups": groups,
    }


def _set_session_cookie(resp: JSONResponse, payload: dict) -> None:
    env = get_env()
    resp.set_cookie(
        key=SESSION_COOKIE,
        value=create_session(payload),
        httponly=True,
        secure=env.cookie_secure,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
    )


@router.post("/login")
def login(
    body: LoginRequest,
    store: LdapConfigStore = Depends(get_store),
    connection_factory: ConnectionFactory | None = Depends(get_connection_factory),
) -> JSONResponse:
    username = body.username.strip()
    if not username or not body.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="username and password are required")

    payload = _bootstrap_login(username, body.password) or _ldap_login(
        username, body.password, store, connection_factory
    )
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    log.info("user %s logged in (auth=%s, settings=%s)", payload["u"], payload["auth"], payload["settings"])
    resp = JSONResponse({"username": payload["u"], "settings": payload["settings"], "groups": payload["groups"]})
    _set_session_cookie(resp, payload)
    return resp


@router.post("/logout")
def logout() -> JSONResponse:
    resp = JSONResponse({"ok": True})
    resp.delete_cookie(SESSION_COOKIE)
    return resp
