"""Field merge resolver: builds the merged contact from a survivor and its sources.

Rules:
- Scalars (name, city, tier, trust_score, introduced_by) keep the
  survivor's value unless the selection names another participating record.
- Collections (aliases, tags, organizations, communities) are unioned
  case-insensitively, first-seen casing wins, survivor first.
- Channels are unioned by (type, normalized value); a channel is primary if
  any contributor marked it so, and at most one primary survives.
- Notes are concatenated, survivor first, without de-duplication.

The resolver is pure: inputs are never mutated and the result shares no
mutable state with them.
"""

from __future__ import annotations

from collections.abc import Sequence

from pcrm.merge.errors import InvalidSelectionError
from pcrm.models.contact import (
    COLLECTION_FIELDS,
    SCALAR_FIELDS,
    Contact,
    ContactChannel,
    ContactNote,
    dedupe_casefold,
)
from pcrm.models.dedupe import MergeSelection


def validate_selection(
    survivor: Contact,
    sources: Sequence[Contact],
    selection: MergeSelection | None,
) -> dict[str, Contact]:
    """Resolve every selected record id to its contact.

    Returns:
        Mapping of field name to the contact whose value that field takes.

    Raises:
        InvalidSelectionError: If a selection names an id outside the merge.
    """
    if selection is None:
        return {}
    participants = {contact.id: contact for contact in (survivor, *sources)}
    chosen: dict[str, Contact] = {}
    for field_name, record_id in selection.chosen().items():
        contact = participants.get(record_id)
        if contact is None:
            raise InvalidSelectionError(field_name, record_id)
        chosen[field_name] = contact
    return chosen


def merge_channels(contributors: Sequence[Contact]) -> list[ContactChannel]:
    """Union channels by (type, normalized value) and settle the primary flag.

    The first contributor's entry is kept for each key; it becomes primary if
    any contributor marked that key primary. Afterwards only the first
    primary keeps the flag, and if none is primary the first channel is
    promoted.
    """
    merged: dict[tuple[str, str], ContactChannel] = {}
    for contact in contributors:
        for channel in contact.channels:
            key = channel.merge_key
            existing = merged.get(key)
            if existing is None:
                merged[key] = channel.model_copy(deep=True)
            elif channel.is_primary and not existing.is_primary:
                merged[key] = existing.model_copy(update={"is_primary": True})

    channels = list(merged.values())
    primary_seen = False
    for index, channel in enumerate(channels):
        if channel.is_primary:
            if primary_seen:
                channels[index] = channel.model_copy(update={"is_primary": False})
            primary_seen = True
    if channels and not primary_seen:
        channels[0] = channels[0].model_copy(update={"is_primary": True})
    return channels


def merge_notes(contributors: Sequence[Contact]) -> list[ContactNote]:
    return [note.model_copy(deep=True) for contact in contributors for note in contact.notes]


def resolve_merged_contact(
    survivor: Contact,
    sources: Sequence[Contact],
    selection: MergeSelection | None = None,
) -> Contact:
    """Build the merged contact without committing it.

    Args:
        survivor: Record that keeps its id.
        sources: Records folded into the survivor, in caller order.
        selection: Optional per-field choice of record.

    Returns:
        A new Contact carrying the survivor's id, workspace and timestamps.

    Raises:
        InvalidSelectionError: If the selection names an id outside
            {survivor} ∪ sources.
    """
    chosen = validate_selection(survivor, sources, selection)
    contributors = [survivor, *sources]

    data = survivor.model_dump()
    for field_name in SCALAR_FIELDS:
        if field_name in chosen:
            data[field_name] = getattr(chosen[field_name], field_name)

    for field_name in COLLECTION_FIELDS:
        data[field_name] = dedupe_casefold(
            value for contact in contributors for value in getattr(contact, field_name)
        )

    field_visibility = dict(survivor.field_visibility)
    for source in sources:
        for key, visibility in source.field_visibility.items():
            field_visibility.setdefault(key, visibility)
    data["field_visibility"] = field_visibility

    interaction_times = [c.last_interaction_at for c in contributors if c.last_interaction_at]
    data["last_interaction_at"] = max(interaction_times) if interaction_times else None

    data["channels"] = [channel.model_dump() for channel in merge_channels(contributors)]
    data["notes"] = [note.model_dump() for note in merge_notes(contributors)]

    return Contact.model_validate(data)
