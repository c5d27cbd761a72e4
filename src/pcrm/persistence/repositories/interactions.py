"""Interaction participant repository (in-memory)."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

from pcrm.models.relations import InteractionParticipant
from pcrm.persistence.repositories.base import InMemoryReferenceRepository
from pcrm.persistence.store import InMemoryStore


class InMemoryInteractionParticipantsRepository(
    InMemoryReferenceRepository[InteractionParticipant]
):
    """Workspace-scoped participants of logged interactions."""

    collaborator_name = "interaction_participants"

    def _records(self) -> dict[str, InteractionParticipant]:
        return self._store.interaction_participants

    def _contact_ids(self, record: InteractionParticipant) -> set[str]:
        return {record.contact_id}

    def _repoint(
        self, record: InteractionParticipant, from_contact_id: str, to_contact_id: str
    ) -> InteractionParticipant:
        return record.model_copy(update={"contact_id": to_contact_id})

    def create(
        self, *, interaction_id: str, contact_id: str, role: str | None = None
    ) -> InteractionParticipant:
        """Record a contact as participant of an interaction."""
        return self._add(
            InteractionParticipant(
                id=str(uuid.uuid4()),
                workspace_id=self._workspace_id,
                interaction_id=interaction_id,
                contact_id=contact_id,
                role=role,
                created_at=datetime.now(UTC),
            )
        )

    def list_for_interaction(self, interaction_id: str) -> list[InteractionParticipant]:
        return [p for p in self.list_referencing() if p.interaction_id == interaction_id]

    def replace_for_interaction(
        self, interaction_id: str, participants: Sequence[tuple[str, str | None]]
    ) -> list[InteractionParticipant]:
        """Replace the participant list of one interaction.

        Args:
            interaction_id: Interaction whose participants are replaced.
            participants: (contact_id, role) pairs in display order.
        """
        records = self._records()
        for key in [
            k
            for k, p in records.items()
            if self._in_workspace(p) and p.interaction_id == interaction_id
        ]:
            del records[key]
        return [
            self.create(interaction_id=interaction_id, contact_id=contact_id, role=role)
            for contact_id, role in participants
        ]


def get_interaction_participants_repository(
    store: InMemoryStore, workspace_id: str
) -> InMemoryInteractionParticipantsRepository:
    return InMemoryInteractionParticipantsRepository(store, workspace_id)
