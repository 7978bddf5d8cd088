from __future__ import annotations

from fastapi import FastAPI

from .env_settings import get_env
from .log_config import setup_logging
from .routers import auth as auth_router
from .routers import config as config_router


def create_app(*, configure_logging: bool = True) -> FastAPI:
    if configure_logging:
        env = get_env()
        setup_logging(
            level=env.log_level,
            retention_days=env.log_retention_days,
            log_dir=env.log_dir,
        )

    app = FastAPI(title="LDAP Authentication")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(config_router.router)
    return app
