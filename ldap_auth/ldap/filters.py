"""Rendering of configured search filter templates.

Templates use positional placeholders: ``{0}`` for the user search; ``{0}``
(user DN), ``{1}`` (uid) and ``{2}`` (mail) for the group search.  Values are
escaped before they are substituted.
"""

from __future__ import annotations

import logging
import string

from ..exceptions import ConfigurationError

__all__ = [
    "NESTED_GROUP_MATCHING_RULE",
    "escape_filter_value",
    "render_group_filter",
    "render_user_filter",
]

log = logging.getLogger(__name__)

NESTED_GROUP_MATCHING_RULE = ":1.2.840.113556.1.4.1941:="
"""Active Directory LDAP_MATCHING_RULE_IN_CHAIN extensible match operator."""


def escape_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def _check_fields(template: str) -> None:
    """Only bare positional fields such as ``{0}`` are allowed."""
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        raise ConfigurationError(f"malformed search filter template {template!r}: {e}") from e
    for _, name, spec, conversion in parsed:
        if name is None:
            continue
        if not name.isdigit() or spec or conversion:
            raise ConfigurationError(
                f"malformed search filter template {template!r}: unsupported field {{{name}}}"
            )


def _format(template: str, *values: str) -> str:
    _check_fields(template)
    escaped = [escape_filter_value(v) for v in values]
    try:
        return template.format(*escaped)
    except (IndexError, KeyError, ValueError, AttributeError, TypeError) as e:
        raise ConfigurationError(f"malformed search filter template {template!r}: {e}") from e


def render_user_filter(template: str, username: str) -> str:
    """Render the user search filter for `username`.

    Raises
    ------
    ConfigurationError
        Raised if no user search filter is configured.
    """
    if not (template or "").strip():
        log.error("search filter not defined")
        raise ConfigurationError("user search filter is not configured")
    flt = _format(template, username)
    log.debug("search-filter for user search: %s", flt)
    return flt


def render_group_filter(
    template: str,
    user_dn: str,
    uid: str,
    mail: str | None,
    nested_groups: bool = False,
) -> str | None:
    """Render the group search filter, or return `None` if none is configured.

    With `nested_groups`, every ``={0}`` clause is rewritten to the recursive
    membership matching rule so that the directory resolves nested groups.
    """
    if not (template or "").strip():
        log.debug("search-filter for groups not defined")
        return None
    if nested_groups:
        template = prepare_nested_groups(template)
    flt = _format(template, user_dn, uid, mail or "")
    log.debug("search-filter for group search: %s", flt)
    return flt


def prepare_nested_groups(template: str) -> str:
    return template.replace("={0}", NESTED_GROUP_MATCHING_RULE + "{0}")
