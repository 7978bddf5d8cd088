from __future__ import annotations

import logging

from ..config.store import LdapConfigStore
from .engine import AuthResult, ConnectionFactory, LdapAuthenticator
from .state import AuthenticationState

log = logging.getLogger(__name__)


class LdapAuthenticationHandler:
    """Entry point for login flows: authenticates with the stored settings.

    The settings are read once per call, so an administrator saving new
    settings does not affect calls already running.
    """

    def __init__(
        self, store: LdapConfigStore, connection_factory: ConnectionFactory | None = None
    ) -> None:
        self._store = store
        self._connection_factory = connection_factory

    def authenticate(self, username: str, password: str) -> AuthResult:
        config = self._store.get()
        if not config.enabled:
            log.debug("ldap authentication is disabled, skipping %s", username)
            return AuthResult(user=None, state=AuthenticationState())
        return LdapAuthenticator(config, self._connection_factory).authenticate(
            username, password
        )
