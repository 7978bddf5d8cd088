from __future__ import annotations

import string
from dataclasses import dataclass, field

from .schema import LdapConfig

_GROUP_PLACEHOLDERS = {"0", "1", "2"}


@dataclass
class ValidateResult:
    ok: bool
    issues: list[str] = field(default_factory=list)


def _placeholders(template: str) -> set[str] | None:
    """Names of the str.format fields in `template`, None if it is malformed."""
    try:
        return {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}
    except ValueError:
        return None


def validate_config(config: LdapConfig) -> ValidateResult:
    """Check settings for mistakes that would make every login fail.

    No network access; the connection test covers the directory side.
    """
    issues: list[str] = []

    url = config.host_url.lower()
    if not url:
        issues.append("host_url is required")
    elif not (url.startswith("ldap://") or url.startswith("ldaps://")):
        issues.append("host_url must start with ldap:// or ldaps://")
    elif url.startswith("ldaps://") and config.enable_start_tls:
        issues.append("StartTLS cannot be combined with ldaps://")

    if not config.base_dn:
        issues.append("base_dn is required")

    if not config.search_filter:
        issues.append("search_filter is required")
    else:
        names = _placeholders(config.search_filter)
        if names is None:
            issues.append("search_filter is malformed")
        elif "0" not in names:
            issues.append("search_filter must contain the {0} placeholder for the username")
        elif names - {"0"}:
            issues.append("search_filter may only use the {0} placeholder")

    if config.search_filter_group:
        names = _placeholders(config.search_filter_group)
        if names is None:
            issues.append("search_filter_group is malformed")
        elif names - _GROUP_PLACEHOLDERS:
            issues.append("search_filter_group may only use the {0}, {1} and {2} placeholders")

    if not config.attribute_name_id:
        issues.append("attribute_name_id is required")

    return ValidateResult(ok=not issues, issues=issues)
