from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from ..auth.diagnostics import ConnectionTestReport, check_connection
from ..auth.engine import ConnectionFactory
from ..config import (
    LdapConfig,
    LdapConfigStore,
    export_config,
    import_config,
    profile_names,
    validate_config,
)
from ..deps import get_connection_factory, get_store, require_settings_access

router = APIRouter(prefix="/api/ldap", dependencies=[Depends(require_settings_access)])
log = logging.getLogger(__name__)
MAX_CONFIG_IMPORT_BYTES = 256 * 1024


class ConnectionTestRequest(BaseModel):
    settings: LdapConfig | None = None
    username: str = Field(default="", max_length=256)
    password: str = Field(default="")


def _same_bind_target(config: LdapConfig, stored: LdapConfig) -> bool:
    """The stored password may only be sent to the server and DN it was saved for."""
    return (
        config.host_url.lower() == stored.host_url.lower()
        and config.connection_dn.lower() == stored.connection_dn.lower()
    )


def _with_stored_password(config: LdapConfig, store: LdapConfigStore) -> LdapConfig:
    if config.connection_password:
        return config
    stored = store.get()
    if not _same_bind_target(config, stored):
        log.warning("bind target changed, not using the stored connection password")
        return config
    return config.model_copy(update={"connection_password": stored.connection_password})


def _save(config: LdapConfig, store: LdapConfigStore) -> LdapConfig:
    keep = _same_bind_target(config, store.get())
    return store.set(config, keep_secrets_if_blank=keep)


@router.get("/profiles")
def list_profiles() -> list[str]:
    return profile_names()


@router.get("/config")
def read_config(store: LdapConfigStore = Depends(get_store)) -> dict[str, Any]:
    return export_config(store.get())


@router.put("/config")
def write_config(config: LdapConfig, store: LdapConfigStore = Depends(get_store)) -> dict[str, Any]:
    res = validate_config(config)
    if not res.ok:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=res.issues)
    return export_config(_save(config, store))


@router.post("/config/test")
def run_config_test(
    body: ConnectionTestRequest,
    store: LdapConfigStore = Depends(get_store),
    connection_factory: ConnectionFactory | None = Depends(get_connection_factory),
) -> ConnectionTestReport:
    config = _with_stored_password(body.settings, store) if body.settings else store.get()
    report = check_connection(config, body.username, body.password, connection_factory)
    log.info(
        "connection test for %s: bind=%s search=%s auth=%s",
        body.username, report.bind, report.search_user, report.authenticate_user,
    )
    return report


@router.get("/config/export")
def export_settings(store: LdapConfigStore = Depends(get_store)) -> dict[str, Any]:
    return export_config(store.get())


@router.post("/config/import")
async def import_settings(request: Request, store: LdapConfigStore = Depends(get_store)) -> dict[str, Any]:
    payload = await request.body()
    if len(payload) > MAX_CONFIG_IMPORT_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="payload too large")
    try:
        config = import_config(payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    res = validate_config(config)
    if not res.ok:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=res.issues)
    return export_config(_save(config, store))
