"""Persistence repositories for PCRM.

Provides workspace-scoped, in-memory data access over an explicit
InMemoryStore.
"""

from pcrm.persistence.repositories.base import (
    ContactReferenceCollaborator,
    InMemoryReferenceRepository,
    ReassignmentResult,
)
from pcrm.persistence.repositories.commitments import (
    InMemoryCommitmentsRepository,
    get_commitments_repository,
)
from pcrm.persistence.repositories.communities import (
    InMemoryCommunityMembershipsRepository,
    get_community_memberships_repository,
)
from pcrm.persistence.repositories.contacts import (
    ContactFilters,
    ContactPage,
    ContactSort,
    ContactWorkspaceMismatchError,
    InMemoryContactsRepository,
    get_contacts_repository,
)
from pcrm.persistence.repositories.interactions import (
    InMemoryInteractionParticipantsRepository,
    get_interaction_participants_repository,
)
from pcrm.persistence.repositories.needs_offers import (
    InMemoryNeedsOffersRepository,
    get_needs_offers_repository,
)
from pcrm.persistence.repositories.relationships import (
    InMemoryRelationshipEdgesRepository,
    get_relationship_edges_repository,
)

__all__ = [
    "ContactFilters",
    "ContactPage",
    "ContactReferenceCollaborator",
    "ContactSort",
    "ContactWorkspaceMismatchError",
    "InMemoryCommitmentsRepository",
    "InMemoryCommunityMembershipsRepository",
    "InMemoryContactsRepository",
    "InMemoryInteractionParticipantsRepository",
    "InMemoryNeedsOffersRepository",
    "InMemoryReferenceRepository",
    "InMemoryRelationshipEdgesRepository",
    "ReassignmentResult",
    "get_commitments_repository",
    "get_community_memberships_repository",
    "get_contacts_repository",
    "get_interaction_participants_repository",
    "get_needs_offers_repository",
    "get_relationship_edges_repository",
]
