from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from .schema import CURRENT_SCHEMA_VERSION, LdapConfig

# Field names of the older camelCase export format.
_LEGACY_FIELDS = {
    "profile": "profile",
    "hostUrl": "host_url",
    "baseDn": "base_dn",
    "connectionDn": "connection_dn",
    "connectionPassword": "connection_password",
    "unitPeople": "unit_people",
    "unitGroup": "unit_group",
    "searchFilter": "search_filter",
    "searchFilterGroup": "search_filter_group",
    "searchScope": "search_scope",
    "attributeNameId": "attribute_name_id",
    "attributeNameFullname": "attribute_name_fullname",
    "attributeNameMail": "attribute_name_mail",
    "attributeNameGroup": "attribute_name_group",
    "referralStrategy": "referral_strategy",
    "enableNestedADGroups": "enable_nested_ad_groups",
    "enableStartTls": "enable_start_tls",
    "enabled": "enabled",
}


def _coerce_legacy_payload(raw: Any) -> Any:
    """Map the camelCase export shape onto the current field names.

    Payloads already using snake_case names are returned unchanged.
    """
    if not isinstance(raw, dict):
        return raw
    if not any(key in raw for key in _LEGACY_FIELDS if key not in ("profile", "enabled")):
        return raw
    return {new: raw[old] for old, new in _LEGACY_FIELDS.items() if old in raw}


def export_config(config: LdapConfig, *, include_secrets: bool = False) -> dict[str, Any]:
    """Export settings to a JSON-serializable dict.

    By default, the connection password is redacted.
    """
    d = config.model_dump()
    d["schema_version"] = CURRENT_SCHEMA_VERSION
    if not include_secrets:
        d["connection_password"] = ""
    return d


def import_config(payload: str | bytes) -> LdapConfig:
    """Parse + validate settings JSON.

    Raises ValueError on errors.
    """
    try:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        raw = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    raw = _coerce_legacy_payload(raw)
    if isinstance(raw, dict):
        raw = {k: v for k, v in raw.items() if k != "schema_version"}
    try:
        return LdapConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(str(e)) from e
