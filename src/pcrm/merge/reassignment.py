"""Relationship reassignment coordinator.

Moves every reference to a source contact onto the survivor across all
collaborator collections of one workspace. Each collaborator is written only
through its own ``reassign`` operation. Repointing is idempotent: a second
call with the same ids finds nothing left to move.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pcrm.persistence.repositories.base import (
    ContactReferenceCollaborator,
    ReassignmentResult,
)
from pcrm.persistence.repositories.commitments import get_commitments_repository
from pcrm.persistence.repositories.communities import get_community_memberships_repository
from pcrm.persistence.repositories.interactions import (
    get_interaction_participants_repository,
)
from pcrm.persistence.repositories.needs_offers import get_needs_offers_repository
from pcrm.persistence.repositories.relationships import get_relationship_edges_repository
from pcrm.persistence.store import InMemoryStore

logger = logging.getLogger(__name__)


class ReassignmentCoordinator:
    """Repoints contact references for one workspace.

    Usage:
        coordinator = ReassignmentCoordinator.for_workspace(store, workspace_id)
        results = coordinator.reassign_all(source_id, survivor_id)
    """

    def __init__(
        self,
        workspace_id: str,
        *,
        community_memberships: ContactReferenceCollaborator,
        interaction_participants: ContactReferenceCollaborator,
        commitment_parties: ContactReferenceCollaborator,
        relationship_edges: ContactReferenceCollaborator,
        needs_offers: ContactReferenceCollaborator,
    ) -> None:
        self._workspace_id = workspace_id
        self._community_memberships = community_memberships
        self._interaction_participants = interaction_participants
        self._commitment_parties = commitment_parties
        self._relationship_edges = relationship_edges
        self._needs_offers = needs_offers

    @classmethod
    def for_workspace(cls, store: InMemoryStore, workspace_id: str) -> ReassignmentCoordinator:
        """Build a coordinator over the store's in-memory collaborators."""
        return cls(
            workspace_id,
            community_memberships=get_community_memberships_repository(store, workspace_id),
            interaction_participants=get_interaction_participants_repository(
                store, workspace_id
            ),
            commitment_parties=get_commitments_repository(store, workspace_id),
            relationship_edges=get_relationship_edges_repository(store, workspace_id),
            needs_offers=get_needs_offers_repository(store, workspace_id),
        )

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    @property
    def collaborators(self) -> Sequence[ContactReferenceCollaborator]:
        """Collaborators in the order reassign_all visits them."""
        return (
            self._community_memberships,
            self._interaction_participants,
            self._commitment_parties,
            self._relationship_edges,
            self._needs_offers,
        )

    def reassign_community_memberships(
        self, from_contact_id: str, to_contact_id: str
    ) -> ReassignmentResult:
        return self._community_memberships.reassign(from_contact_id, to_contact_id)

    def reassign_interaction_participants(
        self, from_contact_id: str, to_contact_id: str
    ) -> ReassignmentResult:
        return self._interaction_participants.reassign(from_contact_id, to_contact_id)

    def reassign_commitment_parties(
        self, from_contact_id: str, to_contact_id: str
    ) -> ReassignmentResult:
        return self._commitment_parties.reassign(from_contact_id, to_contact_id)

    def reassign_relationship_edges(
        self, from_contact_id: str, to_contact_id: str
    ) -> ReassignmentResult:
        """Repoint from, to and introduced-by ids of every edge independently."""
        return self._relationship_edges.reassign(from_contact_id, to_contact_id)

    def reassign_needs_offers(self, from_contact_id: str, to_contact_id: str) -> ReassignmentResult:
        return self._needs_offers.reassign(from_contact_id, to_contact_id)

    def reassign_all(self, from_contact_id: str, to_contact_id: str) -> list[ReassignmentResult]:
        """Run every collaborator's reassignment, stopping at the first failure.

        Returns:
            One result per collaborator visited; the last one is the failure
            if any collaborator failed.
        """
        results: list[ReassignmentResult] = []
        for collaborator in self.collaborators:
            result = collaborator.reassign(from_contact_id, to_contact_id)
            results.append(result)
            if not result.success:
                logger.warning(
                    "Reassignment stopped at %s for %s -> %s in workspace %s: %s",
                    result.collaborator,
                    from_contact_id,
                    to_contact_id,
                    self._workspace_id,
                    result.error,
                )
                break
        return results

    def dangling_references(self, contact_ids: Sequence[str]) -> list[str]:
        """Describe every collaborator that still references one of the ids."""
        problems = []
        for collaborator in self.collaborators:
            for contact_id in contact_ids:
                if collaborator.references_contact(contact_id):
                    problems.append(
                        f"{collaborator.collaborator_name} still references {contact_id}"
                    )
        return problems
