from __future__ import annotations

import logging

from sqlalchemy.orm import sessionmaker

from ..crypto import SecretDecryptError, decrypt_secret, encrypt_secret
from ..db import get_session_factory
from ..models import LdapSettings, utcnow_naive
from ..repo import db_session, get_or_create_settings
from .schema import CURRENT_SCHEMA_VERSION, LdapConfig

log = logging.getLogger(__name__)

_PLAIN_FIELDS = (
    "profile",
    "host_url",
    "base_dn",
    "connection_dn",
    "unit_people",
    "unit_group",
    "search_filter",
    "search_filter_group",
    "search_scope",
    "attribute_name_id",
    "attribute_name_fullname",
    "attribute_name_mail",
    "attribute_name_group",
    "referral_strategy",
    "enable_nested_ad_groups",
    "enable_start_tls",
    "enabled",
)


class LdapConfigStore:
    """Persists the LDAP settings in the single ``ldap_settings`` row.

    The connection password is stored encrypted.
    """

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    def get(self) -> LdapConfig:
        with db_session(self._session_factory) as db:
            st = db.get(LdapSettings, 1)
            if st is None:
                return LdapConfig()
            return _row_to_config(st)

    def set(self, config: LdapConfig, *, keep_secrets_if_blank: bool = True) -> LdapConfig:
        """Persist `config` and return what is stored now.

        With `keep_secrets_if_blank`, an empty password keeps the stored one.
        """
        with db_session(self._session_factory) as db:
            st = get_or_create_settings(db)
            st.schema_version = CURRENT_SCHEMA_VERSION
            for name in _PLAIN_FIELDS:
                setattr(st, name, getattr(config, name))
            if config.connection_password or not keep_secrets_if_blank:
                st.connection_password_enc = encrypt_secret(config.connection_password)
            st.updated_at = utcnow_naive()
            db.commit()
            db.refresh(st)
            log.info("ldap settings saved (profile=%s, enabled=%s)", st.profile, st.enabled)
            return _row_to_config(st)


def _row_to_config(st: LdapSettings) -> LdapConfig:
    data = {name: getattr(st, name) for name in _PLAIN_FIELDS}
    try:
        data["connection_password"] = decrypt_secret(st.connection_password_enc or "")
    except SecretDecryptError:
        log.warning(
            "connection password in ldap_settings (id=%s) cannot be decrypted; "
            "LDAPAUTH_SECRET_KEY changed? Save the password again",
            st.id,
        )
        data["connection_password"] = ""
    return LdapConfig.model_validate(data)
