"""Models for duplicate detection and merge input.

DedupeSuggestion is ephemeral: it describes one scorer run and is never
persisted. MergeSelection lives only for the duration of one merge call.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DedupeReason(StrEnum):
    """Human-readable signal that contributed to a duplicate score."""

    EXACT_EMAIL = "exact email match"
    EXACT_PHONE = "exact phone match"
    FUZZY_NAME = "fuzzy name match"
    SAME_CITY = "same city"
    SHARED_ORGANIZATION = "shared organization"


class DedupeSuggestion(BaseModel):
    """A candidate duplicate pair with its score and explanation."""

    contact_id: str = Field(..., description="First contact of the pair (enumeration order)")
    candidate_id: str = Field(..., description="Second contact of the pair")
    score: float = Field(..., ge=0.0, le=1.0, description="Duplicate likelihood")
    reasons: list[DedupeReason] = Field(..., min_length=1, description="Signals in firing order")

    model_config = {"frozen": True, "extra": "forbid"}


class MergeSelection(BaseModel):
    """Per-field choice of which record's scalar value the merged contact keeps.

    Each attribute holds a contact id (the survivor or one of the sources).
    Fields left unset keep the survivor's value. camelCase names are accepted
    as aliases so payloads from the web layer validate unchanged.
    """

    name: str | None = None
    city: str | None = None
    tier: str | None = None
    trust_score: str | None = Field(default=None, alias="trustScore")
    introduced_by: str | None = Field(default=None, alias="introducedBy")

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    def chosen(self) -> dict[str, str]:
        """Return only the fields that name a record, keyed by field name."""
        return {
            field_name: record_id
            for field_name, record_id in self.model_dump(by_alias=False).items()
            if record_id is not None
        }
