"""LDAP authentication of a username and password.

The flow of `LdapAuthenticator.authenticate`:

1. bind with the service account (``connection_dn``);
2. search the user below the user search base with the user filter;
3. bind as the found entry with the supplied password;
4. map the entry attributes to a `~ldap_auth.ldap.models.User`;
5. collect groups from the membership attribute of the entry and from the
   group search, if one is configured.

Every fault is raised as a subclass of `~ldap_auth.exceptions.LdapAuthError`
carrying the `AuthenticationState` reached so far.  A user that does not
exist is not a fault: the result simply has no user.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..config.schema import LdapConfig
from ..exceptions import (
    BindConnectionFailed,
    ConfigurationError,
    DirectoryConnectionError,
    DirectoryError,
    DirectorySearchError,
    InvalidUser,
    UserAuthenticationFailed,
    UserSearchFailed,
)
from ..ldap.connection import DirectoryConnection, scope_from_name
from ..ldap.filters import render_group_filter, render_user_filter
from ..ldap.mapper import AttributeMapper, get_attribute
from ..ldap.models import DirectoryEntry, User
from .state import AuthenticationState

__all__ = ["ATTRIBUTE_GROUP_NAME", "AuthResult", "GroupResolution", "LdapAuthenticator"]

log = logging.getLogger(__name__)

ATTRIBUTE_GROUP_NAME = "cn"
"""Attribute holding the name of entries found by the group search."""

ConnectionFactory = Callable[[LdapConfig, str, str], DirectoryConnection]


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authentication that did not raise."""

    user: User | None
    groups: frozenset[str] = frozenset()
    state: AuthenticationState = field(default_factory=AuthenticationState)

    @property
    def authenticated(self) -> bool:
        return self.user is not None


@dataclass(frozen=True)
class GroupResolution:
    """Groups found for a user, and the error that cut the search short."""

    groups: frozenset[str]
    error: BaseException | None = None


class LdapAuthenticator:
    """Authenticates users against the directory described by `config`.

    Parameters
    ----------
    config
        Settings used for every call.  It is immutable, so concurrent calls
        share it safely.
    connection_factory
        Opens a bound `DirectoryConnection`; defaults to
        `DirectoryConnection.open`.
    """

    def __init__(
        self, config: LdapConfig, connection_factory: ConnectionFactory | None = None
    ) -> None:
        self._config = config
        self._open = connection_factory or DirectoryConnection.open
        self._mapper = AttributeMapper(
            config.attribute_name_id,
            config.attribute_name_fullname,
            config.attribute_name_mail,
        )

    @property
    def config(self) -> LdapConfig:
        return self._config

    def authenticate(self, username: str, password: str) -> AuthResult:
        """Authenticate `username` with `password`.

        Returns
        -------
        AuthResult
            With the user and its groups on success, without a user if no
            entry matches `username`.

        Raises
        ------
        ConfigurationError
            Base DN or user search filter missing; raised before any
            connection is opened.
        BindConnectionFailed
            The service account bind failed.
        UserSearchFailed
            The user search returned an error.
        UserAuthenticationFailed
            The password is wrong.
        InvalidUser
            The entry has no value for the id attribute.
        """
        config = self._config
        state = AuthenticationState()

        try:
            base_dn = config.user_search_base_dn()
            user_filter = render_user_filter(config.search_filter, username)
        except ConfigurationError as e:
            e.state = state.with_error(e)
            raise

        state, bind_conn = self._bind(config, state)
        with bind_conn:
            state, entry = self._search_user(bind_conn, base_dn, user_filter, username, state)
            if entry is None:
                return AuthResult(user=None, state=state)

            state = self._authenticate_user(entry.dn, password, state)

            user = self._mapper.to_user(entry.attributes)
            state = state.with_user_valid(user.is_valid)
            if not user.is_valid:
                log.warning("the returned user is not valid: %s", user)
                raise InvalidUser(
                    f"entry {entry.dn} has no value for {config.attribute_name_id!r}", state
                )

            resolution = self._resolve_groups(bind_conn, entry, user)
            if resolution.error is not None:
                state = state.with_group_error(resolution.error)

        log.info("user %s authenticated with %d groups", user.name, len(resolution.groups))
        return AuthResult(user=user, groups=resolution.groups, state=state)

    def _bind(
        self, config: LdapConfig, state: AuthenticationState
    ) -> tuple[AuthenticationState, DirectoryConnection]:
        try:
            conn = self._open(config, config.connection_dn, config.connection_password)
        except DirectoryConnectionError as e:
            log.error("could not bind to ldap with dn %s: %s", config.connection_dn, e)
            state = state.with_bind(False, e)
            raise BindConnectionFailed(str(e), state) from e
        return state.with_bind(True), conn

    def _search_user(
        self,
        conn: DirectoryConnection,
        base_dn: str,
        user_filter: str,
        username: str,
        state: AuthenticationState,
    ) -> tuple[AuthenticationState, DirectoryEntry | None]:
        config = self._config
        scope = scope_from_name(config.search_scope)
        log.debug("using scope %s for user search", config.search_scope)
        try:
            entries = conn.search(
                base_dn,
                user_filter,
                scope=scope,
                size_limit=1,
                attributes=config.return_attributes(),
            )
            entry = next(entries, None)
        except DirectorySearchError as e:
            log.error("exception occurred during user search: %s", e)
            state = state.with_search_user(False, e)
            raise UserSearchFailed(str(e), state) from e

        if entry is None:
            log.warning("no user with username %s found", username)
            return state.with_search_user(False), None
        return state.with_search_user(True), entry

    def _authenticate_user(
        self, user_dn: str, password: str, state: AuthenticationState
    ) -> AuthenticationState:
        if not password:
            # A simple bind with an empty password is an anonymous bind.
            log.debug("authentication failed for user %s: empty password", user_dn)
            error = UserAuthenticationFailed(f"empty password for {user_dn}")
            state = state.with_authenticate_user(False, error)
            error.state = state
            raise error
        try:
            with self._open(self._config, user_dn, password):
                pass
        except DirectoryConnectionError as e:
            log.debug("authentication failed for user %s", user_dn, exc_info=True)
            state = state.with_authenticate_user(False, e)
            raise UserAuthenticationFailed(
                f"authentication failed for {user_dn}", state
            ) from e
        log.debug("user %s successfully authenticated", user_dn)
        return state.with_authenticate_user(True)

    def _resolve_groups(
        self, conn: DirectoryConnection, entry: DirectoryEntry, user: User
    ) -> GroupResolution:
        """Union of the membership attribute and the group search.

        A failing group search contributes no groups and is reported through
        `GroupResolution.error`; it never fails the authentication.
        """
        groups = AttributeMapper.extract_group_names(
            entry.attributes, self._config.attribute_name_group
        )
        try:
            groups |= self._search_groups(conn, entry.dn, user)
        except (DirectoryError, ConfigurationError) as e:
            log.debug("could not find groups for %s", entry.dn, exc_info=True)
            return GroupResolution(frozenset(groups), e)
        return GroupResolution(frozenset(groups))

    def _search_groups(self, conn: DirectoryConnection, user_dn: str, user: User) -> set[str]:
        config = self._config
        group_filter = render_group_filter(
            config.search_filter_group,
            user_dn,
            user.name,
            user.mail,
            nested_groups=config.enable_nested_ad_groups,
        )
        if group_filter is None:
            return set()

        log.debug("try to fetch groups for user %s", user.name)
        search_dn = config.group_search_base_dn()
        log.debug("search groups for user %s at %s with filter %s", user_dn, search_dn, group_filter)

        groups: set[str] = set()
        for group in conn.search(
            search_dn, group_filter, scope=scope_from_name("sub"), attributes=[ATTRIBUTE_GROUP_NAME]
        ):
            name = get_attribute(group.attributes, ATTRIBUTE_GROUP_NAME)
            if name:
                log.debug("append group %s with name %s to user result", group.dn, name)
                groups.add(name)
            else:
                log.debug("could not read group name from %s", group.dn)
        return groups
