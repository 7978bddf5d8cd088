"""Small, side-effect free helpers.

Keep this package dependency-light to avoid circular imports.
"""

from .dn import dn_first_component_value, join_dn  # noqa: F401
