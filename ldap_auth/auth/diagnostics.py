from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from ..config.schema import LdapConfig
from ..exceptions import ConfigurationError, LdapAuthError
from ..ldap.models import User
from .engine import ConnectionFactory, LdapAuthenticator
from .state import AuthenticationState

log = logging.getLogger(__name__)


class ReportUser(BaseModel):
    name: str
    display_name: str = ""
    mail: str = ""
    type: str = ""


class ConnectionTestReport(BaseModel):
    """Result of a trial authentication, shown by the settings dialog."""

    configured: bool = True
    bind: bool = False
    search_user: bool = False
    authenticate_user: bool = False
    user_valid: bool = False
    user: ReportUser | None = None
    groups: list[str] = Field(default_factory=list)
    error: str = ""
    group_error: str = ""

    @property
    def ok(self) -> bool:
        return self.user is not None


def check_connection(
    config: LdapConfig,
    username: str,
    password: str,
    connection_factory: ConnectionFactory | None = None,
) -> ConnectionTestReport:
    """Run a full authentication with `config` and report every stage.

    Unlike `LdapAuthenticator.authenticate` this never raises for
    authentication faults: they end up in the report.
    """
    authenticator = LdapAuthenticator(config, connection_factory)
    try:
        result = authenticator.authenticate(username, password)
    except LdapAuthError as e:
        log.info("connection test for %s failed: %s", username, type(e).__name__)
        report = _from_state(e.state or AuthenticationState(error=e))
        report.configured = not isinstance(e, ConfigurationError)
        if not report.error:
            report.error = f"{type(e).__name__}: {e}"
        return report

    report = _from_state(result.state)
    if result.user is not None:
        report.user = ReportUser(**_user_fields(result.user))
        report.groups = sorted(result.groups)
    return report


def _user_fields(user: User) -> dict[str, str]:
    return {
        "name": user.name,
        "display_name": user.display_name,
        "mail": user.mail,
        "type": user.type,
    }


def _from_state(state: AuthenticationState) -> ConnectionTestReport:
    group_error = ""
    if state.group_error is not None:
        group_error = f"{type(state.group_error).__name__}: {state.group_error}"
    return ConnectionTestReport(
        bind=bool(state.bind),
        search_user=bool(state.search_user),
        authenticate_user=bool(state.authenticate_user),
        user_valid=bool(state.user_valid),
        error=state.describe_error(),
        group_error=group_error,
    )
