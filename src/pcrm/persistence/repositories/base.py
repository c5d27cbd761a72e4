"""Shared contract for collections that reference contacts by id.

Every collaborator a merge touches implements ContactReferenceCollaborator:
it can list the records it holds for a workspace, repoint references from
one contact id to another, report whether any record still references a
contact, and replace its workspace state with a prior snapshot.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from pcrm.persistence.store import InMemoryStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


def restore_workspace_records(
    records: dict[str, R],
    snapshot: Sequence[R],
    belongs: Callable[[R], bool],
) -> None:
    """Replace the records for which ``belongs`` holds with a snapshot, in place.

    Records outside the workspace keep their positions. Snapshot records come
    back in snapshot order; one deleted since the snapshot is reinserted just
    before the next workspace record that survived.
    """
    restored: dict[str, R] = {
        record.id: record.model_copy(deep=True)  # type: ignore[attr-defined]
        for record in snapshot
    }
    order = list(restored)
    position = {key: i for i, key in enumerate(order)}
    rebuilt: dict[str, R] = {}
    emitted = 0

    for key, record in list(records.items()):
        if not belongs(record):
            rebuilt[key] = record
            continue
        if key not in position:
            continue
        while emitted <= position[key]:
            rebuilt[order[emitted]] = restored[order[emitted]]
            emitted += 1
    for key in order[emitted:]:
        rebuilt[key] = restored[key]

    if list(records) != list(rebuilt):
        records.clear()
    records.update(rebuilt)


@dataclass(frozen=True)
class ReassignmentResult:
    """Outcome of repointing one collaborator's references."""

    collaborator: str
    success: bool
    reassigned: int = 0
    error: str | None = None

    @classmethod
    def succeeded(cls, collaborator: str, reassigned: int) -> ReassignmentResult:
        return cls(collaborator=collaborator, success=True, reassigned=reassigned)

    @classmethod
    def failed(cls, collaborator: str, error: str) -> ReassignmentResult:
        return cls(collaborator=collaborator, success=False, error=error)


@runtime_checkable
class ContactReferenceCollaborator(Protocol):
    """Protocol for a workspace-scoped collection holding contact ids."""

    @property
    def collaborator_name(self) -> str:
        """Stable name used in results, logs and audit events."""
        ...

    def list_referencing(self) -> list[Any]:
        """Return deep copies of every record in the workspace."""
        ...

    def reassign(self, from_contact_id: str, to_contact_id: str) -> ReassignmentResult:
        """Repoint every reference to ``from_contact_id`` at ``to_contact_id``."""
        ...

    def references_contact(self, contact_id: str) -> bool:
        """Return True if any workspace record still holds ``contact_id``."""
        ...

    def restore(self, snapshot: Sequence[Any]) -> None:
        """Replace the workspace's records with a snapshot from list_referencing()."""
        ...


class InMemoryReferenceRepository(ABC, Generic[R]):
    """Base for in-memory collaborator repositories.

    Subclasses pick the backing dict and describe how a record carries
    contact ids. Reassignment is all-or-nothing per collaborator: every
    matching record is checked before any is replaced.
    """

    collaborator_name: str = ""

    def __init__(self, store: InMemoryStore, workspace_id: str) -> None:
        """Initialize with store and workspace context.

        Args:
            store: Backing in-memory store.
            workspace_id: Workspace every operation is scoped to.
        """
        self._store = store
        self._workspace_id = workspace_id

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    @abstractmethod
    def _records(self) -> dict[str, R]:
        """Backing dict for this collection."""

    @abstractmethod
    def _contact_ids(self, record: R) -> set[str]:
        """All contact ids a record references."""

    @abstractmethod
    def _repoint(self, record: R, from_contact_id: str, to_contact_id: str) -> R:
        """Return a copy of the record with ``from`` replaced by ``to``."""

    def _in_workspace(self, record: R) -> bool:
        return getattr(record, "workspace_id", None) == self._workspace_id

    def _check_reassignable(self, record: R) -> str | None:
        """Return a reason the record cannot be repointed, or None."""
        return None

    def _add(self, record: R) -> R:
        self._records()[record.id] = record  # type: ignore[attr-defined]
        return record.model_copy(deep=True)

    def list_referencing(self) -> list[R]:
        return [
            record.model_copy(deep=True)
            for record in self._records().values()
            if self._in_workspace(record)
        ]

    def references_contact(self, contact_id: str) -> bool:
        return any(
            contact_id in self._contact_ids(record)
            for record in self._records().values()
            if self._in_workspace(record)
        )

    def reassign(self, from_contact_id: str, to_contact_id: str) -> ReassignmentResult:
        records = self._records()
        if from_contact_id == to_contact_id:
            return ReassignmentResult.succeeded(self.collaborator_name, 0)

        updates: dict[str, R] = {}
        for key, record in records.items():
            if from_contact_id not in self._contact_ids(record):
                continue
            problem = self._check_reassignable(record)
            if problem is not None:
                logger.error(
                    "Cannot reassign %s record %s in workspace %s: %s",
                    self.collaborator_name,
                    key,
                    self._workspace_id,
                    problem,
                )
                return ReassignmentResult.failed(self.collaborator_name, problem)
            if not self._in_workspace(record):
                continue
            updates[key] = self._repoint(record, from_contact_id, to_contact_id)

        records.update(updates)
        logger.debug(
            "Reassigned %d %s record(s) from %s to %s",
            len(updates),
            self.collaborator_name,
            from_contact_id,
            to_contact_id,
        )
        return ReassignmentResult.succeeded(self.collaborator_name, len(updates))

    def restore(self, snapshot: Sequence[R]) -> None:
        restore_workspace_records(self._records(), snapshot, self._in_workspace)
        logger.debug(
            "Restored %d %s record(s) for workspace %s",
            len(snapshot),
            self.collaborator_name,
            self._workspace_id,
        )
