"""Relationship-graph edge repository (in-memory).

An edge can hold a contact id in three places: ``from_contact_id``,
``to_contact_id`` and ``introduced_by_contact_id``. Each is repointed
independently, so a self-introduction edge (A introduced A to B) becomes
S introduced S to B when A merges into S.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pcrm.models.relations import RelationshipEdge
from pcrm.persistence.repositories.base import InMemoryReferenceRepository
from pcrm.persistence.store import InMemoryStore


class InMemoryRelationshipEdgesRepository(InMemoryReferenceRepository[RelationshipEdge]):
    """Workspace-scoped relationship edges."""

    collaborator_name = "relationship_edges"

    def _records(self) -> dict[str, RelationshipEdge]:
        return self._store.relationship_edges

    def _contact_ids(self, record: RelationshipEdge) -> set[str]:
        return record.contact_ids()

    def _repoint(
        self, record: RelationshipEdge, from_contact_id: str, to_contact_id: str
    ) -> RelationshipEdge:
        def swap(value: str | None) -> str | None:
            return to_contact_id if value == from_contact_id else value

        return record.model_copy(
            update={
                "from_contact_id": swap(record.from_contact_id),
                "to_contact_id": swap(record.to_contact_id),
                "introduced_by_contact_id": swap(record.introduced_by_contact_id),
            }
        )

    def create(
        self,
        *,
        from_contact_id: str,
        to_contact_id: str,
        introduced_by_contact_id: str | None = None,
    ) -> RelationshipEdge:
        return self._add(
            RelationshipEdge(
                id=str(uuid.uuid4()),
                workspace_id=self._workspace_id,
                from_contact_id=from_contact_id,
                to_contact_id=to_contact_id,
                introduced_by_contact_id=introduced_by_contact_id,
                created_at=datetime.now(UTC),
            )
        )


def get_relationship_edges_repository(
    store: InMemoryStore, workspace_id: str
) -> InMemoryRelationshipEdgesRepository:
    return InMemoryRelationshipEdgesRepository(store, workspace_id)
