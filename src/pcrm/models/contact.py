"""Contact model: the identity record that dedupe and merge operate on.

A contact carries scalar attributes, case-insensitive collection attributes,
typed communication channels and free-text notes. Collection attributes are
kept as ordered lists with first-seen casing; membership is compared on the
trimmed, lowercased value so "VIP" and " vip " are the same tag.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

COLLECTION_FIELDS: tuple[str, ...] = ("aliases", "tags", "organizations", "communities")
SCALAR_FIELDS: tuple[str, ...] = ("name", "city", "tier", "trust_score", "introduced_by")


def normalize_text(value: str | None) -> str:
    """Trim and lowercase a value for comparison; None becomes ""."""
    if value is None:
        return ""
    return value.strip().lower()


def dedupe_casefold(values: Iterable[str]) -> list[str]:
    """Drop blanks and case-insensitive duplicates, keeping first-seen casing.

    Args:
        values: Candidate members in priority order.

    Returns:
        Trimmed members, each normalized value appearing once.
    """
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        trimmed = value.strip()
        key = trimmed.lower()
        if not trimmed or key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    return result


class ChannelType(str, Enum):
    """Kind of communication channel."""

    PHONE = "phone"
    EMAIL = "email"
    TELEGRAM = "telegram"
    WHATSAPP = "whatsapp"


class Visibility(str, Enum):
    """Visibility of a note or field."""

    PUBLIC = "public"
    PRIVATE = "private"


class ContactChannel(BaseModel):
    """A typed contact method owned by exactly one contact."""

    id: str = Field(..., description="Channel identifier")
    type: ChannelType = Field(..., description="Channel kind")
    value: str = Field(..., description="Address, number or handle")
    is_primary: bool = Field(default=False, description="Preferred channel flag")

    model_config = {"frozen": False, "extra": "forbid"}

    @property
    def merge_key(self) -> tuple[str, str]:
        """Identity of the channel for union purposes: (type, normalized value)."""
        return (self.type.value, normalize_text(self.value))


class ContactNote(BaseModel):
    """Free-text note attached to a contact."""

    id: str = Field(..., description="Note identifier")
    content: str = Field(..., description="Note body")
    visibility: Visibility = Field(default=Visibility.PUBLIC)
    created_at: datetime | None = Field(default=None)

    model_config = {"frozen": False, "extra": "forbid"}


class Contact(BaseModel):
    """Identity record for a person within a workspace.

    ``id`` and ``workspace_id`` never change after creation. The four
    collection fields never hold case-insensitive duplicates; the validator
    below enforces that on every construction, including ``model_validate``
    of merge results.
    """

    id: str = Field(..., description="Opaque, stable contact identifier")
    workspace_id: str = Field(..., description="Owning workspace")
    name: str = Field(..., description="Display name")
    city: str | None = Field(default=None)
    tier: str | None = Field(default=None)
    trust_score: float | None = Field(default=None)
    introduced_by: str | None = Field(default=None)
    aliases: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    organizations: list[str] = Field(default_factory=list)
    communities: list[str] = Field(default_factory=list)
    channels: list[ContactChannel] = Field(default_factory=list)
    notes: list[ContactNote] = Field(default_factory=list)
    field_visibility: dict[str, Visibility] = Field(default_factory=dict)
    last_interaction_at: datetime | None = Field(default=None)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    model_config = {"frozen": False, "extra": "forbid"}

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("city", "tier", "introduced_by", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Trim optional text attributes; empty strings mean absent."""
        if isinstance(v, str):
            trimmed = v.strip()
            return trimmed or None
        return v

    @field_validator(*COLLECTION_FIELDS, mode="before")
    @classmethod
    def normalize_collection(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list | tuple):
            return dedupe_casefold(str(item) for item in v)
        return v

    @model_validator(mode="after")
    def validate_trust_score(self) -> Contact:
        if self.trust_score is not None and self.trust_score < 0:
            raise ValueError("trust_score must be non-negative")
        return self

    def values_for(self, channel_type: ChannelType) -> list[str]:
        """Normalized, non-empty channel values of one type."""
        values = []
        for channel in self.channels:
            if channel.type != channel_type:
                continue
            normalized = normalize_text(channel.value)
            if normalized:
                values.append(normalized)
        return values
