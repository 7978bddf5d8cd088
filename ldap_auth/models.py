from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def utcnow_naive() -> datetime:
    # Naive UTC, as stored by the SQLite DateTime columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LdapSettings(Base):
    __tablename__ = "ldap_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)  # always 1

    schema_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    profile: Mapped[str] = mapped_column(String(32), default="custom", nullable=False)
    host_url: Mapped[str] = mapped_column(String(512), default="ldap://localhost:389", nullable=False)
    base_dn: Mapped[str] = mapped_column(String(1024), default="", nullable=False)

    connection_dn: Mapped[str] = mapped_column(String(1024), default="", nullable=False)
    connection_password_enc: Mapped[str] = mapped_column(String(2048), default="", nullable=False)

    unit_people: Mapped[str] = mapped_column(String(512), default="", nullable=False)
    unit_group: Mapped[str] = mapped_column(String(512), default="", nullable=False)

    search_filter: Mapped[str] = mapped_column(Text, default="", nullable=False)
    search_filter_group: Mapped[str] = mapped_column(Text, default="", nullable=False)
    search_scope: Mapped[str] = mapped_column(String(8), default="sub", nullable=False)  # object|one|sub

    attribute_name_id: Mapped[str] = mapped_column(String(128), default="uid", nullable=False)
    attribute_name_fullname: Mapped[str] = mapped_column(String(128), default="cn", nullable=False)
    attribute_name_mail: Mapped[str] = mapped_column(String(128), default="mail", nullable=False)
    attribute_name_group: Mapped[str] = mapped_column(String(128), default="", nullable=False)

    referral_strategy: Mapped[str] = mapped_column(String(8), default="FOLLOW", nullable=False)  # FOLLOW|IGNORE|THROW
    enable_nested_ad_groups: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    enable_start_tls: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow_naive, nullable=False)
