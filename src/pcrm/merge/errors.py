"""Exceptions raised while merging contacts.

Every class carries a machine-readable ``code`` that the merge service
copies into MergeResult.error_code. None of them is fatal to the process:
the caller may retry, fix its input, or abandon the merge.
"""

from __future__ import annotations

from collections.abc import Sequence


class MergeError(Exception):
    """Base exception for contact merge errors."""

    code = "merge_failed"


class MergeValidationError(MergeError):
    """Input rejected before any state was touched."""

    code = "invalid_merge_request"


class SurvivorNotFoundError(MergeValidationError):
    """Raised when the survivor id does not resolve in the workspace."""

    code = "survivor_not_found"

    def __init__(self, survivor_id: str, workspace_id: str) -> None:
        self.survivor_id = survivor_id
        self.workspace_id = workspace_id
        super().__init__(f"Survivor contact {survivor_id} not found in workspace {workspace_id}")


class SourceNotFoundError(MergeValidationError):
    """Raised when one or more source ids do not resolve in the workspace."""

    code = "source_not_found"

    def __init__(self, missing_ids: Sequence[str], workspace_id: str) -> None:
        self.missing_ids = list(missing_ids)
        self.workspace_id = workspace_id
        super().__init__(
            f"Source contact(s) {', '.join(self.missing_ids)} not found "
            f"in workspace {workspace_id}"
        )


class NoSourcesError(MergeValidationError):
    """Raised when no source remains after dropping duplicates and the survivor."""

    code = "no_sources"

    def __init__(self, survivor_id: str) -> None:
        self.survivor_id = survivor_id
        super().__init__(f"No contacts to merge into {survivor_id}")


class InvalidSelectionError(MergeValidationError):
    """Raised when a field selection names a record outside the merge."""

    code = "invalid_selection"

    def __init__(self, field_name: str, record_id: str) -> None:
        self.field_name = field_name
        self.record_id = record_id
        super().__init__(
            f"Selection for field {field_name!r} names contact {record_id}, "
            "which is neither the survivor nor a source"
        )


class ReassignmentError(MergeError):
    """Raised when a collaborator cannot repoint its references."""

    code = "reassignment_failed"

    def __init__(self, collaborator: str, from_contact_id: str, reason: str | None) -> None:
        self.collaborator = collaborator
        self.from_contact_id = from_contact_id
        self.reason = reason
        super().__init__(
            f"Reassignment of {collaborator} from {from_contact_id} failed: "
            f"{reason or 'unknown error'}"
        )


class MergeVerificationError(MergeError):
    """Raised when post-merge checks find an inconsistent state."""

    code = "verification_failed"

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__(f"Merge verification failed: {'; '.join(self.problems)}")


class RollbackError(MergeError):
    """Raised when restoring snapshots after a failed merge did not fully succeed."""

    code = "rollback_failed"
