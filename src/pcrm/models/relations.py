"""Records owned by other subsystems that reference contacts by id.

These are the foreign-key holders a contact merge has to repoint:
community memberships, interaction participants, commitment parties,
relationship-graph edges and needs/offers entries.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class CommunityMembership(BaseModel):
    """Membership of a contact in a community."""

    id: str
    workspace_id: str
    community_id: str
    contact_id: str
    role: str | None = None
    joined_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid"}


class InteractionParticipant(BaseModel):
    """Participation of a contact in a logged interaction."""

    id: str
    workspace_id: str
    interaction_id: str
    contact_id: str
    role: str | None = None
    created_at: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid"}


class CommitmentStatus(str, Enum):
    """Lifecycle of a commitment."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    FULFILLED = "fulfilled"
    BROKEN = "broken"
    CANCELED = "canceled"


class CommitmentPartyRole(str, Enum):
    """Role a contact plays in a commitment."""

    OWED_BY = "owed_by"
    OWES_TO = "owes_to"
    OBSERVER = "observer"


class Commitment(BaseModel):
    """A promise tracked between contacts.

    Parties are stored separately and point back via ``commitment_id``;
    a party's workspace is the workspace of its commitment.
    """

    id: str
    workspace_id: str
    title: str
    description: str | None = None
    status: CommitmentStatus = CommitmentStatus.OPEN
    due_at: datetime | None = None
    closed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid"}


class CommitmentParty(BaseModel):
    """A contact's role on a commitment."""

    id: str
    commitment_id: str
    contact_id: str
    role: CommitmentPartyRole
    created_at: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid"}


class CommitmentWithParties(BaseModel):
    """Read model: a commitment with its party list."""

    commitment: Commitment
    parties: list[CommitmentParty] = Field(default_factory=list)


class RelationshipEdge(BaseModel):
    """Directed edge of the relationship graph.

    Up to three contact ids: both endpoints and, optionally, the contact who
    made the introduction.
    """

    id: str
    workspace_id: str
    from_contact_id: str
    to_contact_id: str
    introduced_by_contact_id: str | None = None
    created_at: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid"}

    def contact_ids(self) -> set[str]:
        ids = {self.from_contact_id, self.to_contact_id}
        if self.introduced_by_contact_id is not None:
            ids.add(self.introduced_by_contact_id)
        return ids


class NeedOfferType(str, Enum):
    NEED = "need"
    OFFER = "offer"


class NeedOfferStatus(str, Enum):
    OPEN = "open"
    MATCHED = "matched"
    CLOSED = "closed"


class NeedOfferRecord(BaseModel):
    """A need or offer posted on behalf of a contact."""

    id: str
    workspace_id: str
    contact_id: str
    type: NeedOfferType
    status: NeedOfferStatus = NeedOfferStatus.OPEN
    created_at: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid"}
