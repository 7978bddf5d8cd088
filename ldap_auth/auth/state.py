from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class AuthenticationState:
    """Diagnostic record of a single authentication attempt.

    Each stage of `~ldap_auth.auth.engine.LdapAuthenticator.authenticate`
    produces a new state with its own field set, so the value can be passed
    along and attached to results and exceptions without shared mutation.
    A field left at `None` means the stage was never reached.
    """

    bind: bool | None = None
    """Service account bind succeeded."""

    search_user: bool | None = None
    """User search ran without error and found an entry."""

    authenticate_user: bool | None = None
    """Bind as the user with the supplied password succeeded."""

    user_valid: bool | None = None
    """The mapped user has a non-empty id."""

    error: BaseException | None = None
    """Last error raised by a failing stage."""

    group_error: BaseException | None = None
    """Error swallowed while resolving groups, if any."""

    def with_error(self, error: BaseException) -> AuthenticationState:
        return replace(self, error=error)

    def with_bind(self, ok: bool, error: BaseException | None = None) -> AuthenticationState:
        return replace(self, bind=ok, error=error or self.error)

    def with_search_user(
        self, ok: bool, error: BaseException | None = None
    ) -> AuthenticationState:
        return replace(self, search_user=ok, error=error or self.error)

    def with_authenticate_user(
        self, ok: bool, error: BaseException | None = None
    ) -> AuthenticationState:
        return replace(self, authenticate_user=ok, error=error or self.error)

    def with_user_valid(self, ok: bool) -> AuthenticationState:
        return replace(self, user_valid=ok)

    def with_group_error(self, error: BaseException) -> AuthenticationState:
        return replace(self, group_error=error)

    def describe_error(self) -> str:
        """Return ``"<ExceptionClass>: <message>"`` for the last error, or ""."""
        if self.error is None:
            return ""
        return f"{type(self.error).__name__}: {self.error}"
