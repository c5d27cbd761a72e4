"""Duplicate suggestion generator.

Scores every unordered pair of contacts and keeps the pairs where at least
one signal fired. Results are ordered by score, highest first; pairs with
equal scores stay in enumeration order (i < j over the input list).

Comparison is quadratic in the number of contacts. It is read-only and
never blocks on merges.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pcrm.config import DedupeSettings, load_dedupe_settings
from pcrm.dedupe.similarity import score_pair
from pcrm.models.contact import Contact
from pcrm.models.dedupe import DedupeSuggestion
from pcrm.observability.tracing import set_span_attributes, traced_operation
from pcrm.persistence.repositories.contacts import get_contacts_repository
from pcrm.persistence.store import InMemoryStore

logger = logging.getLogger(__name__)


def _suggestion(
    left: Contact, right: Contact, settings: DedupeSettings | None
) -> DedupeSuggestion | None:
    result = score_pair(left, right, settings)
    if not result.is_candidate:
        return None
    return DedupeSuggestion(
        contact_id=left.id,
        candidate_id=right.id,
        score=result.score,
        reasons=list(result.reasons),
    )


def _rank(suggestions: list[DedupeSuggestion]) -> list[DedupeSuggestion]:
    # sorted() is stable, so equal scores keep enumeration order
    return sorted(suggestions, key=lambda s: s.score, reverse=True)


def suggest_duplicates(
    contacts: Sequence[Contact],
    settings: DedupeSettings | None = None,
) -> list[DedupeSuggestion]:
    """Suggest likely duplicate pairs among contacts.

    Args:
        contacts: Contacts to compare, typically one workspace's list_all().
        settings: Scorer weights; defaults to the built-in constants.

    Returns:
        Suggestions sorted by score descending.
    """
    suggestions: list[DedupeSuggestion] = []
    for i, left in enumerate(contacts):
        for right in contacts[i + 1 :]:
            suggestion = _suggestion(left, right, settings)
            if suggestion is not None:
                suggestions.append(suggestion)
    return _rank(suggestions)


def suggest_for_contact(
    contact: Contact,
    candidates: Iterable[Contact],
    settings: DedupeSettings | None = None,
) -> list[DedupeSuggestion]:
    """Suggest duplicates of one contact among candidates.

    The contact itself is skipped if it appears among the candidates.
    Every suggestion has ``contact_id == contact.id``.
    """
    suggestions = []
    for candidate in candidates:
        if candidate.id == contact.id:
            continue
        suggestion = _suggestion(contact, candidate, settings)
        if suggestion is not None:
            suggestions.append(suggestion)
    return _rank(suggestions)


def suggest_duplicates_for_workspace(
    store: InMemoryStore,
    workspace_id: str,
    settings: DedupeSettings | None = None,
) -> list[DedupeSuggestion]:
    """Suggest duplicates among every contact of a workspace.

    Settings default to load_dedupe_settings(), so environment overrides
    apply here and not to the pure functions above.
    """
    contacts = get_contacts_repository(store, workspace_id).list_all()
    settings = settings or load_dedupe_settings()

    with traced_operation(
        "contacts.dedupe",
        {"pcrm.workspace_id": workspace_id, "pcrm.contact_count": len(contacts)},
    ) as span:
        suggestions = suggest_duplicates(contacts, settings)
        set_span_attributes(span, {"pcrm.suggestion_count": len(suggestions)})

    logger.debug(
        "Found %d duplicate suggestion(s) among %d contact(s) in workspace %s",
        len(suggestions),
        len(contacts),
        workspace_id,
    )
    return suggestions
