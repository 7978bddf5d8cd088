"""LDAP settings: typed schema, presets, validation, persistence and export."""

from .export_import import export_config, import_config
from .profiles import PROFILES, apply_profile, profile_names
from .schema import CURRENT_SCHEMA_VERSION, LdapConfig
from .store import LdapConfigStore
from .validator import ValidateResult, validate_config

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "PROFILES",
    "LdapConfig",
    "LdapConfigStore",
    "ValidateResult",
    "apply_profile",
    "export_config",
    "import_config",
    "profile_names",
    "validate_config",
]
