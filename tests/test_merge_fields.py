"""Tests for the field merge resolver.

Tests:
- Scalar selection and survivor defaults
- Case-insensitive collection union with first-seen casing
- Channel union and primary settlement
- Notes, field visibility and last interaction
- Purity: inputs never mutated
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pcrm.merge.errors import InvalidSelectionError
from pcrm.merge.fields import merge_channels, resolve_merged_contact, validate_selection
from pcrm.models.contact import ChannelType, Contact
from pcrm.models.dedupe import MergeSelection
from tests.fixtures.synthetic.contacts_fixture import (
    ALFA_ID,
    ALPHA_ID,
    get_contact_data,
    make_contact,
)


@pytest.fixture
def alpha() -> Contact:
    return Contact.model_validate(get_contact_data(ALPHA_ID))


@pytest.fixture
def alfa() -> Contact:
    return Contact.model_validate(get_contact_data(ALFA_ID))


class TestScalarFields:
    """Tests for scalar selection."""

    def test_selection_takes_value_from_named_record(self, alpha: Contact, alfa: Contact) -> None:
        """Scenario A: selecting the source's name yields that name."""
        merged = resolve_merged_contact(alpha, [alfa], MergeSelection(name=ALFA_ID))

        assert merged.name == "Alfa"
        assert merged.id == ALPHA_ID
        assert merged.city == "Berlin"
        assert merged.trust_score == 4.0

    def test_without_selection_survivor_wins(self, alpha: Contact, alfa: Contact) -> None:
        """Unselected scalars keep the survivor's values."""
        merged = resolve_merged_contact(alpha, [alfa])

        assert (merged.name, merged.city, merged.tier, merged.trust_score) == (
            "Alpha",
            "Berlin",
            "inner",
            4.0,
        )

    def test_camel_case_selection(self, alpha: Contact, alfa: Contact) -> None:
        """Wire names trustScore and introducedBy select like snake_case."""
        selection = MergeSelection.model_validate({"trustScore": ALFA_ID, "tier": ALFA_ID})

        merged = resolve_merged_contact(alpha, [alfa], selection)

        assert merged.trust_score == 2.5
        assert merged.tier == "outer"

    def test_selecting_survivor_explicitly(self, alpha: Contact, alfa: Contact) -> None:
        """Naming the survivor is valid and keeps its value."""
        merged = resolve_merged_contact(alpha, [alfa], MergeSelection(city=ALPHA_ID))

        assert merged.city == "Berlin"

    def test_selection_outside_merge_raises(self, alpha: Contact, alfa: Contact) -> None:
        """A selected id that is neither survivor nor source is rejected."""
        with pytest.raises(InvalidSelectionError) as exc_info:
            resolve_merged_contact(alpha, [alfa], MergeSelection(name="ct-unknown"))

        assert exc_info.value.field_name == "name"
        assert exc_info.value.record_id == "ct-unknown"
        assert exc_info.value.code == "invalid_selection"

    def test_unknown_selection_field_rejected(self) -> None:
        """MergeSelection forbids fields that are not mergeable scalars."""
        with pytest.raises(ValueError):
            MergeSelection.model_validate({"aliases": ALFA_ID})

    def test_validate_selection_maps_fields_to_contacts(
        self, alpha: Contact, alfa: Contact
    ) -> None:
        """validate_selection() resolves every chosen id."""
        chosen = validate_selection(alpha, [alfa], MergeSelection(name=ALFA_ID, city=ALPHA_ID))

        assert {field: contact.id for field, contact in chosen.items()} == {
            "name": ALFA_ID,
            "city": ALPHA_ID,
        }


class TestCollectionFields:
    """Tests for case-insensitive union of collections."""

    def test_union_keeps_first_seen_casing(self, alpha: Contact, alfa: Contact) -> None:
        """Survivor's casing wins; new members from sources are appended."""
        merged = resolve_merged_contact(alpha, [alfa])

        assert merged.tags == ["VIP", "founder", "investor"]
        assert merged.aliases == ["Al", "A."]
        assert merged.organizations == ["Acme", "Globex"]
        assert merged.communities == ["Climbers"]

    def test_sources_contribute_in_order(self) -> None:
        """Multiple sources are folded in input order."""
        survivor = make_contact("s", "S", tags=["one"])
        first = make_contact("a", "A", tags=["Two"])
        second = make_contact("b", "B", tags=["two", "Three"])

        merged = resolve_merged_contact(survivor, [first, second])

        assert merged.tags == ["one", "Two", "Three"]


class TestChannels:
    """Tests for channel union and primary settlement."""

    def test_scenario_a_channels(self, alpha: Contact, alfa: Contact) -> None:
        """Email and phone are both kept; exactly one is primary."""
        merged = resolve_merged_contact(alpha, [alfa], MergeSelection(name=ALFA_ID))

        assert [c.type for c in merged.channels] == [ChannelType.EMAIL, ChannelType.PHONE]
        assert [c.is_primary for c in merged.channels] == [True, False]

    def test_duplicate_channels_collapse_by_normalized_value(self) -> None:
        """Same type and normalized value is one channel, primary if any was."""
        survivor = make_contact(
            "s", "S", channels=[{"id": "e1", "type": "email", "value": "A@X.com"}]
        )
        source = make_contact(
            "a",
            "A",
            channels=[{"id": "e2", "type": "email", "value": " a@x.com", "is_primary": True}],
        )

        channels = merge_channels([survivor, source])

        assert len(channels) == 1
        assert channels[0].id == "e1"
        assert channels[0].value == "A@X.com"
        assert channels[0].is_primary is True

    def test_first_channel_promoted_when_none_primary(self) -> None:
        """Non-empty channels without a primary get the first promoted."""
        survivor = make_contact("s", "S", channels=[{"id": "p1", "type": "phone", "value": "+1"}])
        source = make_contact("a", "A", channels=[{"id": "t1", "type": "telegram", "value": "@a"}])

        channels = merge_channels([survivor, source])

        assert [c.is_primary for c in channels] == [True, False]

    def test_no_channels_stays_empty(self) -> None:
        """No channels means nothing to promote."""
        assert merge_channels([make_contact("s", "S"), make_contact("a", "A")]) == []


class TestOtherFields:
    """Notes, visibility, timestamps and purity."""

    def test_notes_concatenated_survivor_first(self, alpha: Contact, alfa: Contact) -> None:
        merged = resolve_merged_contact(alpha, [alfa])

        assert [n.id for n in merged.notes] == ["note-alpha-1", "note-alfa-1"]

    def test_field_visibility_survivor_wins(self, alpha: Contact, alfa: Contact) -> None:
        """Survivor entries win; sources only fill missing keys."""
        merged = resolve_merged_contact(alpha, [alfa])

        assert merged.field_visibility == {"city": "private", "tier": "private"}

    def test_last_interaction_is_most_recent(self, alpha: Contact, alfa: Contact) -> None:
        merged = resolve_merged_contact(alpha, [alfa])

        assert merged.last_interaction_at == datetime(2025, 1, 12, 18, 30, tzinfo=UTC)

    def test_timestamps_and_identity_from_survivor(self, alpha: Contact, alfa: Contact) -> None:
        merged = resolve_merged_contact(alpha, [alfa])

        assert merged.id == alpha.id
        assert merged.workspace_id == alpha.workspace_id
        assert merged.created_at == alpha.created_at
        assert merged.updated_at == alpha.updated_at

    def test_inputs_not_mutated(self, alpha: Contact, alfa: Contact) -> None:
        """The resolver never mutates its inputs and shares no state with them."""
        alpha_before = alpha.model_dump()
        alfa_before = alfa.model_dump()

        merged = resolve_merged_contact(alpha, [alfa], MergeSelection(name=ALFA_ID))
        merged.tags.append("mutated")
        merged.channels[0].value = "changed@x.com"

        assert alpha.model_dump() == alpha_before
        assert alfa.model_dump() == alfa_before
