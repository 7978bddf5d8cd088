from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import ConfigurationError
from ..utils.dn import join_dn

log = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1

SearchScope = Literal["object", "one", "sub"]
ReferralStrategy = Literal["FOLLOW", "IGNORE", "THROW"]


class LdapConfig(BaseModel):
    """Directory connection and mapping settings.

    Instances are immutable: a config taken at the start of an
    authentication call stays the same for the whole call even if the
    stored settings are replaced meanwhile.
    """

    model_config = ConfigDict(frozen=True)

    profile: str = Field(default="custom", max_length=32)
    host_url: str = Field(default="ldap://localhost:389", max_length=512)
    base_dn: str = Field(default="", max_length=1024)

    connection_dn: str = Field(default="", max_length=1024)
    connection_password: str = Field(default="")  # plaintext; storage decides how to persist

    unit_people: str = Field(default="", max_length=512)
    unit_group: str = Field(default="", max_length=512)

    search_filter: str = Field(default="")
    search_filter_group: str = Field(default="")
    search_scope: SearchScope = Field(default="sub")

    attribute_name_id: str = Field(default="uid", max_length=128)
    attribute_name_fullname: str = Field(default="cn", max_length=128)
    attribute_name_mail: str = Field(default="mail", max_length=128)
    attribute_name_group: str = Field(default="", max_length=128)

    referral_strategy: ReferralStrategy = Field(default="FOLLOW")
    enable_nested_ad_groups: bool = Field(default=False)
    enable_start_tls: bool = Field(default=False)
    enabled: bool = Field(default=False)

    @field_validator(
        "profile",
        "host_url",
        "base_dn",
        "connection_dn",
        "unit_people",
        "unit_group",
        "search_filter",
        "search_filter_group",
        "attribute_name_id",
        "attribute_name_fullname",
        "attribute_name_mail",
        "attribute_name_group",
        mode="before",
    )
    @classmethod
    def _strip(cls, v: str | None) -> str:
        return (v or "").strip()

    @field_validator("connection_password", mode="before")
    @classmethod
    def _none_password(cls, v: str | None) -> str:
        return v or ""

    @field_validator("search_scope", mode="before")
    @classmethod
    def _lower_scope(cls, v: str | None) -> str:
        return (v or "sub").strip().lower()

    @field_validator("referral_strategy", mode="before")
    @classmethod
    def _upper_referral(cls, v: str | None) -> str:
        return (v or "FOLLOW").strip().upper()

    def user_search_base_dn(self) -> str:
        return self._search_base_dn("user", self.unit_people)

    def group_search_base_dn(self) -> str:
        return self._search_base_dn("group", self.unit_group)

    def _search_base_dn(self, kind: str, unit: str) -> str:
        if not self.base_dn:
            log.error("no basedn defined")
            raise ConfigurationError("base DN is not configured")
        if not unit:
            log.debug("no prefix for %s defined, using basedn for search", kind)
        dn = join_dn(unit, self.base_dn)
        log.debug("search base for %s search: %s", kind, dn)
        return dn

    def return_attributes(self) -> list[str]:
        """Attributes requested in the user search (empty names skipped)."""
        names = [
            self.attribute_name_id,
            self.attribute_name_fullname,
            self.attribute_name_mail,
            self.attribute_name_group,
        ]
        return [n for n in names if n]
