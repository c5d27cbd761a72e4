"""Contacts repository (in-memory).

Provides workspace-scoped access to contacts: the read and write operations
a merge relies on (get, list_all, put, delete, restore) plus creation and
filtered listing for callers of the CRUD layer.

Returned contacts are deep copies; mutating one never changes the store.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from pcrm.models.contact import Contact, normalize_text
from pcrm.persistence.repositories.base import restore_workspace_records
from pcrm.persistence.store import InMemoryStore

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 20


class ContactWorkspaceMismatchError(Exception):
    """Raised when a write would move a contact across workspaces."""

    def __init__(self, contact_id: str, expected: str, actual: str) -> None:
        self.contact_id = contact_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Contact {contact_id} belongs to workspace {actual}, not {expected}"
        )


class ContactSort(str, Enum):
    """Sort order for contact listings."""

    LAST_INTERACTION = "last_interaction"
    TRUST_SCORE = "trust_score"
    NAME = "name"


class ContactFilters(BaseModel):
    """Optional filters for listing contacts. All comparisons are case-insensitive."""

    tier: str | None = None
    city: str | None = None
    tags: list[str] = Field(default_factory=list)
    trust_score_min: float | None = None
    trust_score_max: float | None = None
    organization: str | None = None
    community: str | None = None

    model_config = {"extra": "forbid"}


class ContactPage(BaseModel):
    """One page of a contact listing."""

    contacts: list[Contact]
    total: int
    page: int
    per_page: int


def _matches(contact: Contact, filters: ContactFilters) -> bool:
    if filters.tier and normalize_text(contact.tier) != normalize_text(filters.tier):
        return False
    if filters.city and normalize_text(contact.city) != normalize_text(filters.city):
        return False
    if filters.tags:
        contact_tags = {normalize_text(tag) for tag in contact.tags}
        if not any(normalize_text(tag) in contact_tags for tag in filters.tags):
            return False
    if filters.organization:
        wanted = normalize_text(filters.organization)
        if not any(normalize_text(org) == wanted for org in contact.organizations):
            return False
    if filters.community:
        wanted = normalize_text(filters.community)
        if not any(normalize_text(c) == wanted for c in contact.communities):
            return False
    if filters.trust_score_min is not None or filters.trust_score_max is not None:
        if contact.trust_score is None:
            return False
        if filters.trust_score_min is not None and contact.trust_score < filters.trust_score_min:
            return False
        if filters.trust_score_max is not None and contact.trust_score > filters.trust_score_max:
            return False
    return True


def _sort_contacts(contacts: list[Contact], sort: ContactSort) -> list[Contact]:
    if sort == ContactSort.TRUST_SCORE:
        return sorted(contacts, key=lambda c: c.trust_score or 0.0, reverse=True)
    if sort == ContactSort.NAME:
        return sorted(contacts, key=lambda c: c.name.casefold())
    # Most recent interaction first; never-contacted contacts last.
    return sorted(
        contacts,
        key=lambda c: c.last_interaction_at.isoformat() if c.last_interaction_at else "",
        reverse=True,
    )


class InMemoryContactsRepository:
    """Workspace-scoped contact store backed by InMemoryStore."""

    def __init__(self, store: InMemoryStore, workspace_id: str) -> None:
        """Initialize with store and workspace context."""
        self._store = store
        self._workspace_id = workspace_id

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    def create(self, *, name: str, **attributes: Any) -> Contact:
        """Create a new contact in the workspace.

        Args:
            name: Display name.
            **attributes: Any other Contact field except id, workspace_id and
                timestamps.

        Returns:
            The created contact.
        """
        now = datetime.now(UTC)
        contact = Contact.model_validate(
            {
                **attributes,
                "id": str(uuid.uuid4()),
                "workspace_id": self._workspace_id,
                "name": name,
                "created_at": now,
                "updated_at": now,
            }
        )
        self._store.contacts[contact.id] = contact
        return contact.model_copy(deep=True)

    def get(self, contact_id: str) -> Contact | None:
        """Get a contact by ID, or None if absent or in another workspace."""
        contact = self._store.contacts.get(contact_id)
        if contact is None or contact.workspace_id != self._workspace_id:
            return None
        return contact.model_copy(deep=True)

    def list_all(self) -> list[Contact]:
        """All contacts of the workspace in insertion order."""
        return [
            contact.model_copy(deep=True)
            for contact in self._store.contacts.values()
            if contact.workspace_id == self._workspace_id
        ]

    def list(
        self,
        filters: ContactFilters | None = None,
        sort: ContactSort = ContactSort.LAST_INTERACTION,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> ContactPage:
        """List contacts with filters, sort and pagination.

        Non-positive page or per_page values fall back to 1 and 20.
        """
        page = page if page > 0 else 1
        per_page = per_page if per_page > 0 else DEFAULT_PER_PAGE
        filters = filters or ContactFilters()

        results = [c for c in self.list_all() if _matches(c, filters)]
        results = _sort_contacts(results, sort)
        start = (page - 1) * per_page
        return ContactPage(
            contacts=results[start : start + per_page],
            total=len(results),
            page=page,
            per_page=per_page,
        )

    def put(self, contact: Contact) -> Contact:
        """Create or replace a contact by id.

        Raises:
            ContactWorkspaceMismatchError: If the contact, or the record it
                would replace, belongs to another workspace.
        """
        if contact.workspace_id != self._workspace_id:
            raise ContactWorkspaceMismatchError(
                contact.id, self._workspace_id, contact.workspace_id
            )
        existing = self._store.contacts.get(contact.id)
        if existing is not None and existing.workspace_id != self._workspace_id:
            raise ContactWorkspaceMismatchError(
                contact.id, self._workspace_id, existing.workspace_id
            )
        stored = contact.model_copy(deep=True)
        self._store.contacts[stored.id] = stored
        return stored.model_copy(deep=True)

    def update(self, contact_id: str, **changes: Any) -> Contact | None:
        """Apply field changes to a contact and stamp ``updated_at``.

        Returns:
            Updated contact, or None if absent or in another workspace.

        Raises:
            ValueError: If a change targets id, workspace_id or created_at.
        """
        protected = {"id", "workspace_id", "created_at"} & changes.keys()
        if protected:
            raise ValueError(f"Cannot update immutable field(s): {', '.join(sorted(protected))}")
        existing = self.get(contact_id)
        if existing is None:
            return None
        data = {**existing.model_dump(), **changes, "updated_at": datetime.now(UTC)}
        return self.put(Contact.model_validate(data))

    def delete(self, contact_id: str) -> bool:
        """Delete a contact. Returns False if absent or in another workspace."""
        contact = self._store.contacts.get(contact_id)
        if contact is None or contact.workspace_id != self._workspace_id:
            return False
        del self._store.contacts[contact_id]
        return True

    def restore(self, snapshot: Sequence[Contact]) -> None:
        """Replace every contact of the workspace with a list_all() snapshot."""
        restore_workspace_records(
            self._store.contacts,
            snapshot,
            lambda contact: contact.workspace_id == self._workspace_id,
        )
        logger.debug(
            "Restored %d contact(s) for workspace %s", len(snapshot), self._workspace_id
        )


def get_contacts_repository(store: InMemoryStore, workspace_id: str) -> InMemoryContactsRepository:
    """Factory for the workspace's contact repository."""
    return InMemoryContactsRepository(store, workspace_id)
