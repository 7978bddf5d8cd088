"""LDAP-backed user authentication."""

__version__ = "1.0.0"
