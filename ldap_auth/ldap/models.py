from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

USER_TYPE = "ldap"
"""Type tag of users created by this package."""


@dataclass
class User:
    name: str
    display_name: str = ""
    mail: str = ""
    type: str = USER_TYPE

    @property
    def is_valid(self) -> bool:
        return bool(self.name)


@dataclass(frozen=True)
class DirectoryEntry:
    """A single search result: its DN and the returned attributes.

    Attribute values are kept the way ldap3 returns them, either a single
    value or a list for multi-valued attributes.
    """

    dn: str
    attributes: dict[str, Any] = field(default_factory=dict)
