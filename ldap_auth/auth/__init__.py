"""LDAP authentication: engine, per-call state and the login handler."""

from .diagnostics import ConnectionTestReport, check_connection
from .engine import AuthResult, GroupResolution, LdapAuthenticator
from .handler import LdapAuthenticationHandler
from .state import AuthenticationState

__all__ = [
    "AuthResult",
    "AuthenticationState",
    "ConnectionTestReport",
    "GroupResolution",
    "LdapAuthenticationHandler",
    "LdapAuthenticator",
    "check_connection",
]
