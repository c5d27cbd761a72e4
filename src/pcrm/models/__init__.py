"""PCRM domain models: Pydantic models for contacts and the records that reference them."""

from pcrm.models.contact import (
    COLLECTION_FIELDS,
    SCALAR_FIELDS,
    ChannelType,
    Contact,
    ContactChannel,
    ContactNote,
    Visibility,
    dedupe_casefold,
    normalize_text,
)
from pcrm.models.dedupe import DedupeReason, DedupeSuggestion, MergeSelection
from pcrm.models.relations import (
    Commitment,
    CommitmentParty,
    CommitmentPartyRole,
    CommitmentStatus,
    CommitmentWithParties,
    CommunityMembership,
    InteractionParticipant,
    NeedOfferRecord,
    NeedOfferStatus,
    NeedOfferType,
    RelationshipEdge,
)

__all__ = [
    "COLLECTION_FIELDS",
    "SCALAR_FIELDS",
    "ChannelType",
    "Commitment",
    "CommitmentParty",
    "CommitmentPartyRole",
    "CommitmentStatus",
    "CommitmentWithParties",
    "CommunityMembership",
    "Contact",
    "ContactChannel",
    "ContactNote",
    "DedupeReason",
    "DedupeSuggestion",
    "InteractionParticipant",
    "MergeSelection",
    "NeedOfferRecord",
    "NeedOfferStatus",
    "NeedOfferType",
    "RelationshipEdge",
    "Visibility",
    "dedupe_casefold",
    "normalize_text",
]
