"""Needs/offers record repository (in-memory).

Holds the needs and offers posted for contacts. Matching them against each
other is a separate subsystem; here they only need to follow a contact
through a merge.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pcrm.models.relations import NeedOfferRecord, NeedOfferStatus, NeedOfferType
from pcrm.persistence.repositories.base import InMemoryReferenceRepository
from pcrm.persistence.store import InMemoryStore


class InMemoryNeedsOffersRepository(InMemoryReferenceRepository[NeedOfferRecord]):
    """Workspace-scoped needs and offers."""

    collaborator_name = "needs_offers"

    def _records(self) -> dict[str, NeedOfferRecord]:
        return self._store.needs_offers

    def _contact_ids(self, record: NeedOfferRecord) -> set[str]:
        return {record.contact_id}

    def _repoint(
        self, record: NeedOfferRecord, from_contact_id: str, to_contact_id: str
    ) -> NeedOfferRecord:
        return record.model_copy(update={"contact_id": to_contact_id})

    def create(
        self,
        *,
        contact_id: str,
        type: NeedOfferType | str,
        status: NeedOfferStatus | str = NeedOfferStatus.OPEN,
    ) -> NeedOfferRecord:
        return self._add(
            NeedOfferRecord(
                id=str(uuid.uuid4()),
                workspace_id=self._workspace_id,
                contact_id=contact_id,
                type=NeedOfferType(type),
                status=NeedOfferStatus(status),
                created_at=datetime.now(UTC),
            )
        )


def get_needs_offers_repository(
    store: InMemoryStore, workspace_id: str
) -> InMemoryNeedsOffersRepository:
    return InMemoryNeedsOffersRepository(store, workspace_id)
