"""Community membership repository (in-memory).

Only the parts of the communities subsystem a contact merge needs:
creating and listing memberships, and the collaborator operations.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pcrm.models.relations import CommunityMembership
from pcrm.persistence.repositories.base import InMemoryReferenceRepository
from pcrm.persistence.store import InMemoryStore


class InMemoryCommunityMembershipsRepository(InMemoryReferenceRepository[CommunityMembership]):
    """Workspace-scoped community memberships."""

    collaborator_name = "community_memberships"

    def _records(self) -> dict[str, CommunityMembership]:
        return self._store.community_memberships

    def _contact_ids(self, record: CommunityMembership) -> set[str]:
        return {record.contact_id}

    def _repoint(
        self, record: CommunityMembership, from_contact_id: str, to_contact_id: str
    ) -> CommunityMembership:
        return record.model_copy(update={"contact_id": to_contact_id})

    def create(
        self,
        *,
        community_id: str,
        contact_id: str,
        role: str | None = None,
        joined_at: datetime | None = None,
    ) -> CommunityMembership:
        """Add a contact to a community."""
        return self._add(
            CommunityMembership(
                id=str(uuid.uuid4()),
                workspace_id=self._workspace_id,
                community_id=community_id,
                contact_id=contact_id,
                role=role,
                joined_at=joined_at,
                created_at=datetime.now(UTC),
            )
        )

    def list_for_community(self, community_id: str) -> list[CommunityMembership]:
        return [m for m in self.list_referencing() if m.community_id == community_id]


def get_community_memberships_repository(
    store: InMemoryStore, workspace_id: str
) -> InMemoryCommunityMembershipsRepository:
    return InMemoryCommunityMembershipsRepository(store, workspace_id)
