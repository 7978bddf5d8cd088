from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..utils.dn import dn_first_component_value
from .models import User

log = logging.getLogger(__name__)


def _lookup(attributes: Mapping[str, Any], name: str) -> Any:
    """Case-insensitive attribute lookup (LDAP attribute names ignore case)."""
    if not name:
        return None
    if name in attributes:
        return attributes[name]
    lowered = name.lower()
    for key, value in attributes.items():
        if key.lower() == lowered:
            return value
    return None


def _values(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        items = list(raw)
    else:
        items = [raw]
    out: list[str] = []
    for v in items:
        if isinstance(v, bytes):
            v = v.decode("utf-8", errors="replace")
        s = str(v).strip()
        if s:
            out.append(s)
    return out


def get_attribute(attributes: Mapping[str, Any], name: str) -> str:
    """First value of an attribute, or "" if absent or unmapped."""
    values = _values(_lookup(attributes, name))
    return values[0] if values else ""


class AttributeMapper:
    """Maps raw directory attributes to a `User` and to group names."""

    def __init__(self, id_attr: str, fullname_attr: str, mail_attr: str) -> None:
        self.id_attr = id_attr
        self.fullname_attr = fullname_attr
        self.mail_attr = mail_attr

    def to_user(self, attributes: Mapping[str, Any]) -> User:
        return User(
            name=get_attribute(attributes, self.id_attr),
            display_name=get_attribute(attributes, self.fullname_attr),
            mail=get_attribute(attributes, self.mail_attr),
        )

    @staticmethod
    def extract_group_names(attributes: Mapping[str, Any], group_attr: str) -> set[str]:
        """Group names from a (multi-valued) membership attribute like memberOf.

        DN values are reduced to their first RDN value.
        """
        if not group_attr:
            log.debug("group attribute is empty")
            return set()
        raw = _lookup(attributes, group_attr)
        if raw is None:
            log.debug("user has no group attributes assigned")
            return set()
        groups: set[str] = set()
        for value in _values(raw):
            name = dn_first_component_value(value)
            if name:
                log.debug("append group %s to user result", name)
                groups.add(name)
        return groups
