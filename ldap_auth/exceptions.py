"""Exceptions for LDAP authentication."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .auth.state import AuthenticationState

__all__ = [
    "BindConnectionFailed",
    "ConfigurationError",
    "DirectoryConnectionError",
    "DirectoryError",
    "DirectorySearchError",
    "InvalidUser",
    "LdapAuthError",
    "UserAuthenticationFailed",
    "UserSearchFailed",
]


class DirectoryError(Exception):
    """An operation against the directory server failed.

    Raised by the connection layer. The message carries the server's result
    description and never any credentials.
    """


class DirectoryConnectionError(DirectoryError):
    """Connecting or binding to the directory failed."""


class DirectorySearchError(DirectoryError):
    """A search request failed with a protocol or transport error."""


class LdapAuthError(Exception):
    """Base class for faults raised by `~ldap_auth.auth.LdapAuthenticator`.

    Parameters
    ----------
    message
        Human-readable description of the fault.
    state
        Diagnostic record of the stages reached before the fault.
    """

    def __init__(
        self, message: str, state: AuthenticationState | None = None
    ) -> None:
        super().__init__(message)
        self.state = state


class ConfigurationError(LdapAuthError):
    """A required setting (base DN, user search filter) is missing."""


class BindConnectionFailed(LdapAuthError):
    """The service account could not bind, or the directory is unreachable."""


class UserSearchFailed(LdapAuthError):
    """The user search failed with an error (not an empty result)."""


class UserAuthenticationFailed(LdapAuthError):
    """The user's password was rejected by the directory."""


class InvalidUser(LdapAuthError):
    """The user entry was found and verified but has no id attribute."""
