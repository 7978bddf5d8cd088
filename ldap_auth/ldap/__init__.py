"""Directory access: connections, filter rendering and attribute mapping.

Public API:
    - DirectoryConnection
    - DirectoryEntry
    - AttributeMapper
    - User
"""

from .connection import DirectoryConnection, scope_from_name
from .mapper import AttributeMapper
from .models import USER_TYPE, DirectoryEntry, User

__all__ = [
    "USER_TYPE",
    "AttributeMapper",
    "DirectoryConnection",
    "DirectoryEntry",
    "User",
    "scope_from_name",
]
