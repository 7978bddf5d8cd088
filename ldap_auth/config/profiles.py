"""Presets for common directory servers."""

from __future__ import annotations

from typing import Any

from .schema import LdapConfig

PROFILES: dict[str, dict[str, Any]] = {
    "active-directory": {
        "attribute_name_id": "sAMAccountName",
        "attribute_name_fullname": "cn",
        "attribute_name_mail": "mail",
        "attribute_name_group": "memberOf",
        "search_filter": "(&(objectClass=person)(sAMAccountName={0}))",
        "search_filter_group": "(&(objectClass=group)(member={0}))",
        "search_scope": "sub",
        "enable_nested_ad_groups": False,
    },
    "openldap": {
        "attribute_name_id": "uid",
        "attribute_name_fullname": "cn",
        "attribute_name_mail": "mail",
        "attribute_name_group": "",
        "search_filter": "(&(objectClass=inetOrgPerson)(uid={0}))",
        "search_filter_group": "(&(objectClass=groupOfUniqueNames)(uniqueMember={0}))",
        "search_scope": "one",
        "unit_people": "ou=People",
        "unit_group": "ou=Groups",
    },
    "openldap-posix": {
        "attribute_name_id": "uid",
        "attribute_name_fullname": "cn",
        "attribute_name_mail": "mail",
        "attribute_name_group": "",
        "search_filter": "(&(objectClass=posixAccount)(uid={0}))",
        "search_filter_group": "(&(objectClass=posixGroup)(memberUid={1}))",
        "search_scope": "one",
        "unit_people": "ou=People",
        "unit_group": "ou=Groups",
    },
    "apache-ds": {
        "attribute_name_id": "uid",
        "attribute_name_fullname": "cn",
        "attribute_name_mail": "mail",
        "attribute_name_group": "",
        "search_filter": "(&(objectClass=person)(uid={0}))",
        "search_filter_group": "(&(objectClass=groupOfUniqueNames)(uniqueMember={0}))",
        "search_scope": "sub",
        "unit_people": "ou=users",
        "unit_group": "ou=groups",
    },
    "custom": {},
}


def profile_names() -> list[str]:
    return sorted(PROFILES)


def apply_profile(config: LdapConfig, name: str) -> LdapConfig:
    """Return a copy of `config` with the fields of profile `name` set."""
    if name not in PROFILES:
        raise ValueError(f"unknown profile {name!r}")
    return config.model_copy(update={**PROFILES[name], "profile": name})
