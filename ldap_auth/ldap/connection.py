from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from ldap3 import (
    ALL_ATTRIBUTES,
    ANONYMOUS,
    BASE,
    LEVEL,
    NONE,
    SIMPLE,
    SUBTREE,
    SYNC,
    Connection,
    Server,
)
from ldap3.core.exceptions import LDAPException

from ..exceptions import DirectoryConnectionError, DirectorySearchError
from .models import DirectoryEntry

if TYPE_CHECKING:
    from ..config.schema import LdapConfig

log = logging.getLogger(__name__)

RESULT_SUCCESS = 0
RESULT_SIZE_LIMIT_EXCEEDED = 4
RESULT_REFERRAL = 10

_SCOPES = {
    "object": BASE,
    "one": LEVEL,
    "sub": SUBTREE,
}


def scope_from_name(name: str) -> str:
    """Map a configured scope name (object, one, sub) to the ldap3 constant."""
    return _SCOPES.get((name or "").strip().lower(), SUBTREE)


def build_server(config: LdapConfig) -> Server:
    kwargs: dict[str, Any] = {"get_info": NONE}
    if config.referral_strategy == "FOLLOW":
        kwargs["allowed_referral_hosts"] = [("*", True)]
    return Server(config.host_url, **kwargs)


def _describe(result: dict | None) -> str:
    result = result or {}
    desc = result.get("description") or "unknown"
    message = (result.get("message") or "").strip()
    return f"{desc} ({message})" if message else str(desc)


class DirectoryConnection:
    """One bound session against the directory.

    Obtain instances with `open`.  The connection must be released with
    `close`, or by using the instance as a context manager.
    """

    def __init__(self, connection: Connection, referral_strategy: str = "FOLLOW") -> None:
        self._conn: Connection | None = connection
        self._referral_strategy = referral_strategy

    @classmethod
    def open(
        cls,
        config: LdapConfig,
        bind_dn: str,
        bind_password: str,
        *,
        server: Server | None = None,
        client_strategy: str = SYNC,
    ) -> DirectoryConnection:
        """Connect and bind.

        An empty `bind_dn` performs an anonymous bind.

        Raises
        ------
        DirectoryConnectionError
            Raised if the server is unreachable or rejects the bind.
        """
        server = server or build_server(config)
        identity = bind_dn or "<anonymous>"
        options: dict[str, Any] = {
            "client_strategy": client_strategy,
            "raise_exceptions": False,
            "read_only": True,
            "auto_referrals": config.referral_strategy == "FOLLOW",
        }
        conn: Connection | None = None
        try:
            if bind_dn:
                conn = Connection(
                    server,
                    user=bind_dn,
                    password=bind_password,
                    authentication=SIMPLE,
                    **options,
                )
            else:
                conn = Connection(server, authentication=ANONYMOUS, **options)
            if config.enable_start_tls:
                conn.open()
                conn.start_tls()
            if not conn.bind():
                raise DirectoryConnectionError(
                    f"bind as {identity} rejected: {_describe(conn.result)}"
                )
        except LDAPException as e:
            _unbind_quietly(conn)
            raise DirectoryConnectionError(
                f"could not bind to {config.host_url} as {identity}: {e}"
            ) from e
        except DirectoryConnectionError:
            _unbind_quietly(conn)
            raise
        log.debug("bound to %s as %s", config.host_url, identity)
        return cls(conn, config.referral_strategy)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def search(
        self,
        base_dn: str,
        search_filter: str,
        scope: str = SUBTREE,
        size_limit: int = 0,
        attributes: list[str] | None = None,
    ) -> Iterator[DirectoryEntry]:
        """Run a search and return its entries.

        Continuation references are skipped.

        Raises
        ------
        DirectorySearchError
            Raised if the connection is closed or the server returns an error.
        """
        if self._conn is None:
            raise DirectorySearchError("connection is closed")
        conn = self._conn
        try:
            conn.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=scope,
                attributes=attributes or ALL_ATTRIBUTES,
                size_limit=size_limit,
            )
        except LDAPException as e:
            raise DirectorySearchError(f"search at {base_dn} failed: {e}") from e

        code = (conn.result or {}).get("result", RESULT_SUCCESS)
        ok = {RESULT_SUCCESS, RESULT_SIZE_LIMIT_EXCEEDED}
        if self._referral_strategy != "THROW":
            ok.add(RESULT_REFERRAL)
        if code not in ok:
            raise DirectorySearchError(f"search at {base_dn} failed: {_describe(conn.result)}")

        return _entries(list(conn.response or []))

    def close(self) -> None:
        """Unbind and release the connection.  Calling it again is a no-op."""
        conn, self._conn = self._conn, None
        _unbind_quietly(conn)

    def __enter__(self) -> DirectoryConnection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _entries(response: list[dict]) -> Iterator[DirectoryEntry]:
    for item in response:
        if item.get("type", "searchResEntry") != "searchResEntry":
            continue
        yield DirectoryEntry(dn=item.get("dn", ""), attributes=item.get("attributes") or {})


def _unbind_quietly(conn: Connection | None) -> None:
    if conn is None:
        return
    try:
        conn.unbind()
    except LDAPException as e:
        log.debug("error while closing ldap connection: %s", e)
