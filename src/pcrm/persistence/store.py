"""In-memory backing store shared by all PCRM repositories.

One InMemoryStore is constructed per process (or per test) and passed
explicitly to every repository. Each collection is an insertion-ordered
dict keyed by record id; repositories scope reads and writes to a single
workspace.
"""

from __future__ import annotations

import logging

from pcrm.models.contact import Contact
from pcrm.models.relations import (
    Commitment,
    CommitmentParty,
    CommunityMembership,
    InteractionParticipant,
    NeedOfferRecord,
    RelationshipEdge,
)
from pcrm.persistence.locks import WorkspaceLockRegistry

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Process-local collections for contacts and the records referencing them."""

    def __init__(self) -> None:
        self.contacts: dict[str, Contact] = {}
        self.community_memberships: dict[str, CommunityMembership] = {}
        self.interaction_participants: dict[str, InteractionParticipant] = {}
        self.commitments: dict[str, Commitment] = {}
        self.commitment_parties: dict[str, CommitmentParty] = {}
        self.relationship_edges: dict[str, RelationshipEdge] = {}
        self.needs_offers: dict[str, NeedOfferRecord] = {}
        self.merge_locks = WorkspaceLockRegistry()

    def clear(self) -> None:
        """Drop every record. For testing and process reset."""
        self.contacts.clear()
        self.community_memberships.clear()
        self.interaction_participants.clear()
        self.commitments.clear()
        self.commitment_parties.clear()
        self.relationship_edges.clear()
        self.needs_offers.clear()
        self.merge_locks.clear()
        logger.debug("In-memory store cleared")
