"""Commitments repository (in-memory).

Parties are the records that reference contacts. A party has no workspace
of its own: it belongs to the workspace of its commitment. A party whose
commitment has disappeared cannot be scoped, so reassigning it is refused
and the merge that asked for it is rolled back.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from pcrm.models.relations import (
    Commitment,
    CommitmentParty,
    CommitmentPartyRole,
    CommitmentStatus,
    CommitmentWithParties,
)
from pcrm.persistence.repositories.base import InMemoryReferenceRepository
from pcrm.persistence.store import InMemoryStore

CLOSED_STATUSES = frozenset(
    {CommitmentStatus.FULFILLED, CommitmentStatus.BROKEN, CommitmentStatus.CANCELED}
)


class InMemoryCommitmentsRepository(InMemoryReferenceRepository[CommitmentParty]):
    """Workspace-scoped commitments and their parties."""

    collaborator_name = "commitment_parties"

    def _records(self) -> dict[str, CommitmentParty]:
        return self._store.commitment_parties

    def _contact_ids(self, record: CommitmentParty) -> set[str]:
        return {record.contact_id}

    def _repoint(
        self, record: CommitmentParty, from_contact_id: str, to_contact_id: str
    ) -> CommitmentParty:
        return record.model_copy(update={"contact_id": to_contact_id})

    def _in_workspace(self, record: CommitmentParty) -> bool:
        commitment = self._store.commitments.get(record.commitment_id)
        return commitment is not None and commitment.workspace_id == self._workspace_id

    def _check_reassignable(self, record: CommitmentParty) -> str | None:
        if record.commitment_id not in self._store.commitments:
            return f"party {record.id} references missing commitment {record.commitment_id}"
        return None

    def create(
        self,
        *,
        title: str,
        parties: Iterable[tuple[str, CommitmentPartyRole | str]] = (),
        status: CommitmentStatus = CommitmentStatus.OPEN,
        description: str | None = None,
        due_at: datetime | None = None,
    ) -> CommitmentWithParties:
        """Create a commitment with its parties.

        Args:
            title: Short description of the promise.
            parties: (contact_id, role) pairs.
            status: Initial status; closed statuses stamp ``closed_at``.
            description: Optional long description.
            due_at: Optional deadline.

        Returns:
            The created commitment with its parties.
        """
        now = datetime.now(UTC)
        commitment = Commitment(
            id=str(uuid.uuid4()),
            workspace_id=self._workspace_id,
            title=title.strip(),
            description=description,
            status=status,
            due_at=due_at,
            closed_at=now if status in CLOSED_STATUSES else None,
            created_at=now,
            updated_at=now,
        )
        self._store.commitments[commitment.id] = commitment
        created = [
            self._add(
                CommitmentParty(
                    id=str(uuid.uuid4()),
                    commitment_id=commitment.id,
                    contact_id=contact_id,
                    role=CommitmentPartyRole(role),
                    created_at=now,
                )
            )
            for contact_id, role in parties
        ]
        return CommitmentWithParties(commitment=commitment, parties=created)

    def _hydrate(self, commitment: Commitment) -> CommitmentWithParties:
        parties = [
            party.model_copy(deep=True)
            for party in self._records().values()
            if party.commitment_id == commitment.id
        ]
        return CommitmentWithParties(commitment=commitment, parties=parties)

    def get(self, commitment_id: str) -> CommitmentWithParties | None:
        """Get a commitment by ID with its parties."""
        commitment = self._store.commitments.get(commitment_id)
        if commitment is None or commitment.workspace_id != self._workspace_id:
            return None
        return self._hydrate(commitment)

    def list_for_contact(
        self,
        contact_id: str,
        roles: Sequence[CommitmentPartyRole] | None = None,
    ) -> list[CommitmentWithParties]:
        """Commitments where the contact is a party, optionally in given roles."""
        wanted = set(roles) if roles else None
        commitment_ids = {
            party.commitment_id
            for party in self.list_referencing()
            if party.contact_id == contact_id and (wanted is None or party.role in wanted)
        }
        return [
            self._hydrate(commitment)
            for commitment in self._store.commitments.values()
            if commitment.id in commitment_ids
        ]

    def delete(self, commitment_id: str) -> bool:
        """Delete a commitment and its parties."""
        commitment = self._store.commitments.get(commitment_id)
        if commitment is None or commitment.workspace_id != self._workspace_id:
            return False
        del self._store.commitments[commitment_id]
        records = self._records()
        for key in [k for k, p in records.items() if p.commitment_id == commitment_id]:
            del records[key]
        return True


def get_commitments_repository(
    store: InMemoryStore, workspace_id: str
) -> InMemoryCommitmentsRepository:
    return InMemoryCommitmentsRepository(store, workspace_id)
