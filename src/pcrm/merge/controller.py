"""ContactMergeService - all-or-nothing merge of contacts into a survivor.

A merge moves through these states:

    idle -> snapshotting -> merging -> reassigning -> verifying -> committed
                                                                 \\-> rolled_back

Validation happens in ``idle`` before anything is captured or written.
Once snapshots are taken, the writes run as a saga: commit the merged
contact and delete the sources, repoint every collaborator per source, then
verify. Any failure restores every snapshot, so the caller observes either
the fully merged state or the untouched one.

Merges within one workspace are serialized by the store's lock registry.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from pcrm.audit.sink import AuditSink, InMemoryAuditSink
from pcrm.merge.errors import (
    MergeError,
    MergeValidationError,
    MergeVerificationError,
    NoSourcesError,
    ReassignmentError,
    RollbackError,
    SourceNotFoundError,
    SurvivorNotFoundError,
)
from pcrm.merge.fields import resolve_merged_contact, validate_selection
from pcrm.merge.reassignment import ReassignmentCoordinator
from pcrm.models.contact import Contact
from pcrm.models.dedupe import MergeSelection
from pcrm.observability.tracing import set_span_attributes, traced_operation
from pcrm.persistence.repositories.base import ReassignmentResult
from pcrm.persistence.repositories.contacts import get_contacts_repository
from pcrm.persistence.saga import SagaExecutor, SagaResult
from pcrm.persistence.store import InMemoryStore

logger = logging.getLogger(__name__)


class MergeState(StrEnum):
    """Stage of the merge state machine."""

    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    MERGING = "merging"
    REASSIGNING = "reassigning"
    VERIFYING = "verifying"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class MergeStatus(StrEnum):
    """Final outcome of a merge call."""

    COMMITTED = "committed"
    REJECTED = "rejected"
    ROLLED_BACK = "rolled_back"
    ROLLBACK_FAILED = "rollback_failed"


@dataclass
class MergeResult:
    """Explicit outcome of a merge: either fully merged or fully unchanged."""

    status: MergeStatus
    workspace_id: str
    survivor_id: str
    source_ids: list[str] = field(default_factory=list)
    contact: Contact | None = None
    error: MergeError | None = None
    state_history: list[MergeState] = field(default_factory=list)
    reassignments: list[ReassignmentResult] = field(default_factory=list)
    saga_result: SagaResult | None = None

    @property
    def is_success(self) -> bool:
        return self.status == MergeStatus.COMMITTED

    @property
    def final_state(self) -> MergeState:
        return self.state_history[-1] if self.state_history else MergeState.IDLE

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None

    def raise_for_failure(self) -> Contact:
        """Return the merged contact, or raise the error that stopped the merge."""
        if self.error is not None:
            raise self.error
        if self.contact is None:
            raise MergeError(f"Merge into {self.survivor_id} produced no contact")
        return self.contact


@dataclass(frozen=True)
class MergeSnapshot:
    """Deep copies of every collection a merge may write to."""

    contacts: list[Contact]
    references: dict[str, list[Any]]


def effective_source_ids(survivor_id: str, source_ids: Sequence[str]) -> list[str]:
    """De-duplicate source ids in order and drop the survivor id."""
    seen: set[str] = {survivor_id}
    result = []
    for source_id in source_ids:
        if source_id in seen:
            continue
        seen.add(source_id)
        result.append(source_id)
    return result


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ContactMergeService:
    """Service orchestrating snapshot, field merge, reassignment, verification and rollback.

    The service performs no authorization: the caller has already checked
    that the acting role may merge contacts in the workspace.

    Usage:
        service = ContactMergeService(workspace_id, store)
        result = service.merge(survivor_id, [source_id], MergeSelection(name=source_id))
    """

    def __init__(
        self,
        workspace_id: str,
        store: InMemoryStore,
        *,
        coordinator: ReassignmentCoordinator | None = None,
        audit_sink: AuditSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the service with workspace context.

        Args:
            workspace_id: Workspace all operations are scoped to.
            store: Backing in-memory store.
            coordinator: Reassignment coordinator; defaults to one over the
                store's collaborators for this workspace.
            audit_sink: Sink for merge audit events.
            clock: Source of the merged contact's updated_at stamp.
        """
        self._workspace_id = workspace_id
        self._store = store
        self._contacts = get_contacts_repository(store, workspace_id)
        self._coordinator = coordinator or ReassignmentCoordinator.for_workspace(
            store, workspace_id
        )
        if self._coordinator.workspace_id != workspace_id:
            raise ValueError(
                f"Coordinator is bound to workspace {self._coordinator.workspace_id}, "
                f"not {workspace_id}"
            )
        self._audit_sink = audit_sink or InMemoryAuditSink()
        self._clock = clock

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    def merge(
        self,
        survivor_id: str,
        source_ids: Sequence[str],
        selection: MergeSelection | Mapping[str, str] | None = None,
        *,
        request_id: str | None = None,
    ) -> MergeResult:
        """Merge source contacts into the survivor.

        Args:
            survivor_id: Contact that keeps its id.
            source_ids: Contacts folded in and deleted. Duplicates and the
                survivor id are ignored.
            selection: Optional per-field record choice for scalar fields.
            request_id: Optional correlation id copied into audit events.

        Returns:
            MergeResult; ``is_success`` is True only when every step,
            including verification, succeeded.
        """
        sources = effective_source_ids(survivor_id, source_ids)
        result = MergeResult(
            status=MergeStatus.REJECTED,
            workspace_id=self._workspace_id,
            survivor_id=survivor_id,
            source_ids=sources,
            state_history=[MergeState.IDLE],
        )

        with (
            self._store.merge_locks.hold(self._workspace_id),
            traced_operation(
                "contacts.merge",
                {
                    "pcrm.workspace_id": self._workspace_id,
                    "pcrm.survivor_id": survivor_id,
                    "pcrm.source_count": len(sources),
                },
            ) as span,
        ):
            try:
                survivor, source_contacts, parsed_selection = self._validate(
                    survivor_id, sources, selection
                )
            except MergeValidationError as e:
                logger.warning(
                    "Merge into %s rejected in workspace %s: %s",
                    survivor_id,
                    self._workspace_id,
                    e,
                )
                result.error = e
            else:
                self._run(result, survivor, source_contacts, parsed_selection)

            set_span_attributes(
                span, {"pcrm.merge_status": result.status, "pcrm.error_code": result.error_code}
            )

        self._emit_audit_event(result, request_id)
        return result

    def _validate(
        self,
        survivor_id: str,
        source_ids: list[str],
        selection: MergeSelection | Mapping[str, str] | None,
    ) -> tuple[Contact, list[Contact], MergeSelection | None]:
        """Check every precondition without touching any collection."""
        survivor = self._contacts.get(survivor_id)
        if survivor is None:
            raise SurvivorNotFoundError(survivor_id, self._workspace_id)
        if not source_ids:
            raise NoSourcesError(survivor_id)

        sources: list[Contact] = []
        missing: list[str] = []
        for source_id in source_ids:
            contact = self._contacts.get(source_id)
            if contact is None:
                missing.append(source_id)
            else:
                sources.append(contact)
        if missing:
            raise SourceNotFoundError(missing, self._workspace_id)

        parsed: MergeSelection | None
        if selection is None or isinstance(selection, MergeSelection):
            parsed = selection
        else:
            try:
                parsed = MergeSelection.model_validate(dict(selection))
            except ValidationError as e:
                raise MergeValidationError(f"Invalid merge selection: {e}") from e

        validate_selection(survivor, sources, parsed)
        return survivor, sources, parsed

    def _take_snapshot(self) -> MergeSnapshot:
        return MergeSnapshot(
            contacts=self._contacts.list_all(),
            references={
                collaborator.collaborator_name: collaborator.list_referencing()
                for collaborator in self._coordinator.collaborators
            },
        )

    def _restore_references(self, snapshot: MergeSnapshot) -> None:
        for collaborator in self._coordinator.collaborators:
            collaborator.restore(snapshot.references[collaborator.collaborator_name])

    def _run(
        self,
        result: MergeResult,
        survivor: Contact,
        sources: list[Contact],
        selection: MergeSelection | None,
    ) -> None:
        history = result.state_history
        source_ids = [source.id for source in sources]

        logger.info(
            "Merging %d contact(s) into %s in workspace %s",
            len(sources),
            survivor.id,
            self._workspace_id,
        )
        history.append(MergeState.SNAPSHOTTING)
        snapshot = self._take_snapshot()

        def commit_merged_contact(ctx: dict[str, Any]) -> Contact:
            history.append(MergeState.MERGING)
            merged = resolve_merged_contact(survivor, sources, selection)
            merged = merged.model_copy(update={"updated_at": self._clock()})
            committed = self._contacts.put(merged)
            for source_id in source_ids:
                self._contacts.delete(source_id)
            ctx["merged"] = committed
            return committed

        def restore_contacts(ctx: dict[str, Any], _: Any) -> None:
            self._contacts.restore(snapshot.contacts)

        def reassign_source(source_id: str) -> Callable[[dict[str, Any]], int]:
            def execute(ctx: dict[str, Any]) -> int:
                if history[-1] != MergeState.REASSIGNING:
                    history.append(MergeState.REASSIGNING)
                outcomes = self._coordinator.reassign_all(source_id, survivor.id)
                result.reassignments.extend(outcomes)
                failed = next((o for o in outcomes if not o.success), None)
                if failed is not None:
                    raise ReassignmentError(failed.collaborator, source_id, failed.error)
                return sum(o.reassigned for o in outcomes)

            return execute

        def restore_references(ctx: dict[str, Any], _: Any) -> None:
            self._restore_references(snapshot)

        def verify(ctx: dict[str, Any]) -> None:
            history.append(MergeState.VERIFYING)
            self._verify(survivor.id, source_ids)

        saga = SagaExecutor(f"contact-merge-{uuid.uuid4()}")
        saga.add(
            "commit_merged_contact",
            commit_merged_contact,
            restore_contacts,
            compensate_on_failure=True,
        )
        for source_id in source_ids:
            saga.add(
                f"reassign_references:{source_id}",
                reassign_source(source_id),
                restore_references,
                compensate_on_failure=True,
            )
        saga.add("verify_merge", verify)

        context: dict[str, Any] = {}
        saga_result = saga.execute(context)
        result.saga_result = saga_result

        if saga_result.is_success:
            history.append(MergeState.COMMITTED)
            result.status = MergeStatus.COMMITTED
            result.contact = context["merged"]
            logger.info(
                "Merged %s into %s in workspace %s",
                ", ".join(source_ids),
                survivor.id,
                self._workspace_id,
            )
            return

        history.append(MergeState.ROLLED_BACK)
        cause = saga_result.error
        if isinstance(cause, MergeError):
            error = cause
        else:
            error = MergeError(f"Merge step failed: {cause}")
            error.__cause__ = cause

        if saga_result.is_compensated:
            result.status = MergeStatus.ROLLED_BACK
            result.error = error
            logger.warning(
                "Merge into %s rolled back at step %s: %s",
                survivor.id,
                saga_result.failed_step,
                error,
            )
        else:
            rollback_error = RollbackError(
                f"Merge into {survivor.id} failed ({error}) and its rollback did not complete"
            )
            rollback_error.__cause__ = error
            result.status = MergeStatus.ROLLBACK_FAILED
            result.error = rollback_error
            logger.error("%s", rollback_error)

    def _verify(self, survivor_id: str, source_ids: list[str]) -> None:
        """Post-conditions: survivor present, sources gone, no dangling references."""
        problems: list[str] = []
        if self._contacts.get(survivor_id) is None:
            problems.append(f"survivor {survivor_id} missing after merge")
        for source_id in source_ids:
            if self._contacts.get(source_id) is not None:
                problems.append(f"source {source_id} still present")
        problems.extend(self._coordinator.dangling_references(source_ids))
        if problems:
            raise MergeVerificationError(problems)

    def _emit_audit_event(self, result: MergeResult, request_id: str | None) -> None:
        """Emit a merge audit event; sink failures are logged, never raised."""
        details: dict[str, Any] = {
            "survivor_id": result.survivor_id,
            "source_ids": result.source_ids,
            "status": result.status.value,
            "final_state": result.final_state.value,
        }
        if result.is_success:
            event_type = "contacts.merged"
            reassigned: dict[str, int] = {}
            for outcome in result.reassignments:
                reassigned[outcome.collaborator] = (
                    reassigned.get(outcome.collaborator, 0) + outcome.reassigned
                )
            details["reassigned"] = reassigned
        else:
            event_type = "contacts.merge_failed"
            details["error_code"] = result.error_code
            if result.saga_result is not None:
                details["failed_step"] = result.saga_result.failed_step

        event: dict[str, Any] = {
            "event_type": event_type,
            "workspace_id": self._workspace_id,
            "resource_type": "contact",
            "resource_id": result.survivor_id,
            "timestamp": self._clock().isoformat().replace("+00:00", "Z"),
            "details": details,
        }
        if request_id:
            event["request_id"] = request_id
        try:
            self._audit_sink.emit(event)
        except Exception as e:
            logger.warning("Failed to emit audit event: %s", e)


def merge_contacts(
    store: InMemoryStore,
    workspace_id: str,
    survivor_id: str,
    source_ids: Sequence[str],
    selection: MergeSelection | Mapping[str, str] | None = None,
    *,
    audit_sink: AuditSink | None = None,
) -> MergeResult:
    """Merge contacts with a one-off ContactMergeService."""
    service = ContactMergeService(workspace_id, store, audit_sink=audit_sink)
    return service.merge(survivor_id, source_ids, selection)
