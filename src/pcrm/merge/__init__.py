"""Contact merge module for PCRM.

Provides ContactMergeService for all-or-nothing merges with:
- Precondition validation before any write
- Snapshot and compensation of contacts and every referencing collection
- Post-merge verification
- Audit event emission
"""

from pcrm.merge.controller import (
    ContactMergeService,
    MergeResult,
    MergeState,
    MergeStatus,
    merge_contacts,
)
from pcrm.merge.errors import (
    InvalidSelectionError,
    MergeError,
    MergeValidationError,
    MergeVerificationError,
    NoSourcesError,
    ReassignmentError,
    RollbackError,
    SourceNotFoundError,
    SurvivorNotFoundError,
)
from pcrm.merge.fields import resolve_merged_contact
from pcrm.merge.reassignment import ReassignmentCoordinator

__all__ = [
    "ContactMergeService",
    "InvalidSelectionError",
    "MergeError",
    "MergeResult",
    "MergeState",
    "MergeStatus",
    "MergeValidationError",
    "MergeVerificationError",
    "NoSourcesError",
    "ReassignmentCoordinator",
    "ReassignmentError",
    "RollbackError",
    "SourceNotFoundError",
    "SurvivorNotFoundError",
    "merge_contacts",
    "resolve_merged_contact",
]
