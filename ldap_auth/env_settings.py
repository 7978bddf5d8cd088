from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field


class EnvSettings(BaseSettings):
    secret_key: str = Field(..., alias="LDAPAUTH_SECRET_KEY")
    cookie_secure: bool = Field(False, alias="LDAPAUTH_COOKIE_SECURE")
    sqlite_path: str = Field("data/ldap_auth.db", alias="SQLITE_PATH")

    # Local account for the first setup; an empty password disables it.
    bootstrap_admin_user: str = Field("admin", alias="BOOTSTRAP_ADMIN_USER")
    bootstrap_admin_password: str = Field("", alias="BOOTSTRAP_ADMIN_PASSWORD")
    # Directory group whose members may change the LDAP settings.
    settings_group: str = Field("", alias="LDAPAUTH_SETTINGS_GROUP")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: str = Field("data/logs", alias="LOG_DIR")
    log_retention_days: int = Field(30, alias="LOG_RETENTION_DAYS")

    class Config:
        populate_by_name = True


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
