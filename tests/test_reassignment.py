"""Tests for the relationship reassignment coordinator and collaborator repositories.

Tests:
- Each collaborator repoints source references to the survivor
- Relationship edges repoint from, to and introduced-by independently
- Idempotence and workspace isolation
- Failure on records that cannot be repointed
- Snapshot/restore of collaborator state
"""

from __future__ import annotations

import pytest

from pcrm.merge.reassignment import ReassignmentCoordinator
from pcrm.models.relations import CommitmentPartyRole
from pcrm.persistence.repositories.base import ContactReferenceCollaborator
from pcrm.persistence.repositories.commitments import get_commitments_repository
from pcrm.persistence.repositories.communities import get_community_memberships_repository
from pcrm.persistence.repositories.interactions import (
    get_interaction_participants_repository,
)
from pcrm.persistence.repositories.needs_offers import get_needs_offers_repository
from pcrm.persistence.repositories.relationships import get_relationship_edges_repository
from pcrm.persistence.store import InMemoryStore
from tests.fixtures.synthetic.contacts_fixture import (
    ALFA_ID,
    ALPHA_ID,
    OUTSIDER_ID,
    SYNTHETIC_WORKSPACE_ID,
    SYNTHETIC_WORKSPACE_ID_OTHER,
    seed_contacts,
    seed_references,
)


@pytest.fixture
def coordinator(store: InMemoryStore) -> ReassignmentCoordinator:
    return ReassignmentCoordinator.for_workspace(store, SYNTHETIC_WORKSPACE_ID)


class TestReassignAll:
    """Tests for ReassignmentCoordinator.reassign_all()."""

    def test_every_collaborator_repointed(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        """All references to the source now hold the survivor id."""
        seed_contacts(store)
        refs = seed_references(store)

        results = coordinator.reassign_all(ALFA_ID, ALPHA_ID)

        assert all(r.success for r in results)
        assert [r.collaborator for r in results] == [
            "community_memberships",
            "interaction_participants",
            "commitment_parties",
            "relationship_edges",
            "needs_offers",
        ]
        assert [r.reassigned for r in results] == [1, 1, 1, 1, 1]
        assert store.community_memberships[refs.membership_id].contact_id == ALPHA_ID
        assert store.interaction_participants[refs.participant_id].contact_id == ALPHA_ID
        assert store.commitment_parties[refs.party_id].contact_id == ALPHA_ID
        assert store.needs_offers[refs.need_id].contact_id == ALPHA_ID
        assert coordinator.dangling_references([ALFA_ID]) == []

    def test_edge_fields_repointed_independently(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        """from and introduced_by are repointed; to already held the survivor."""
        refs = seed_references(store)

        coordinator.reassign_relationship_edges(ALFA_ID, ALPHA_ID)

        edge = store.relationship_edges[refs.edge_id]
        assert edge.from_contact_id == ALPHA_ID
        assert edge.to_contact_id == ALPHA_ID
        assert edge.introduced_by_contact_id == ALPHA_ID

    def test_edge_to_endpoint_only(self, store: InMemoryStore) -> None:
        """An edge only ending at the source keeps its other fields."""
        edges = get_relationship_edges_repository(store, SYNTHETIC_WORKSPACE_ID)
        edge = edges.create(
            from_contact_id=OUTSIDER_ID,
            to_contact_id=ALFA_ID,
            introduced_by_contact_id=OUTSIDER_ID,
        )

        result = edges.reassign(ALFA_ID, ALPHA_ID)

        updated = store.relationship_edges[edge.id]
        assert result.reassigned == 1
        assert (
            updated.from_contact_id,
            updated.to_contact_id,
            updated.introduced_by_contact_id,
        ) == (OUTSIDER_ID, ALPHA_ID, OUTSIDER_ID)

    def test_idempotent(self, store: InMemoryStore, coordinator: ReassignmentCoordinator) -> None:
        """A second run finds nothing to move and changes nothing."""
        seed_references(store)
        coordinator.reassign_all(ALFA_ID, ALPHA_ID)
        after_first = {k: v.model_dump() for k, v in store.relationship_edges.items()}

        results = coordinator.reassign_all(ALFA_ID, ALPHA_ID)

        assert all(r.success and r.reassigned == 0 for r in results)
        assert {k: v.model_dump() for k, v in store.relationship_edges.items()} == after_first

    def test_same_id_is_noop(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        seed_references(store)

        results = coordinator.reassign_all(ALFA_ID, ALFA_ID)

        assert all(r.success and r.reassigned == 0 for r in results)
        assert coordinator.dangling_references([ALFA_ID]) != []

    def test_other_workspace_untouched(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        """Records of another workspace keep the source id."""
        refs = seed_references(store, workspace_id=SYNTHETIC_WORKSPACE_ID_OTHER)

        results = coordinator.reassign_all(ALFA_ID, ALPHA_ID)

        assert all(r.success and r.reassigned == 0 for r in results)
        assert store.community_memberships[refs.membership_id].contact_id == ALFA_ID
        assert store.commitment_parties[refs.party_id].contact_id == ALFA_ID
        assert store.relationship_edges[refs.edge_id].from_contact_id == ALFA_ID


class TestCommitmentParties:
    """Tests for commitment party reassignment."""

    def test_role_and_commitment_preserved(self, store: InMemoryStore) -> None:
        """Scenario C at the collaborator level: same role, commitment and party count."""
        commitments = get_commitments_repository(store, SYNTHETIC_WORKSPACE_ID)
        created = commitments.create(
            title="Intro to investor",
            parties=[(ALFA_ID, CommitmentPartyRole.OWED_BY), (OUTSIDER_ID, "owes_to")],
        )

        commitments.reassign(ALFA_ID, ALPHA_ID)

        loaded = commitments.get(created.commitment.id)
        assert loaded is not None
        assert len(loaded.parties) == 2
        roles = {p.contact_id: p.role for p in loaded.parties}
        assert roles == {
            ALPHA_ID: CommitmentPartyRole.OWED_BY,
            OUTSIDER_ID: CommitmentPartyRole.OWES_TO,
        }

    def test_party_with_missing_commitment_fails_without_writes(
        self, store: InMemoryStore
    ) -> None:
        """A party whose commitment is gone cannot be scoped, so nothing is written."""
        commitments = get_commitments_repository(store, SYNTHETIC_WORKSPACE_ID)
        kept = commitments.create(title="Kept", parties=[(ALFA_ID, "observer")])
        orphaned = commitments.create(title="Orphaned", parties=[(ALFA_ID, "owed_by")])
        del store.commitments[orphaned.commitment.id]

        result = commitments.reassign(ALFA_ID, ALPHA_ID)

        assert not result.success
        assert result.collaborator == "commitment_parties"
        assert "missing commitment" in (result.error or "")
        assert store.commitment_parties[kept.parties[0].id].contact_id == ALFA_ID

    def test_reassign_all_stops_at_failure(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        """Collaborators after the failing one are not visited."""
        refs = seed_references(store)
        del store.commitments[refs.commitment_id]

        results = coordinator.reassign_all(ALFA_ID, ALPHA_ID)

        assert [r.collaborator for r in results] == [
            "community_memberships",
            "interaction_participants",
            "commitment_parties",
        ]
        assert not results[-1].success
        assert store.relationship_edges[refs.edge_id].from_contact_id == ALFA_ID

    def test_list_for_contact_filters_roles(self, store: InMemoryStore) -> None:
        commitments = get_commitments_repository(store, SYNTHETIC_WORKSPACE_ID)
        commitments.create(title="Owed", parties=[(ALFA_ID, "owed_by")])
        commitments.create(title="Watched", parties=[(ALFA_ID, "observer")])

        owed = commitments.list_for_contact(ALFA_ID, roles=[CommitmentPartyRole.OWED_BY])

        assert [c.commitment.title for c in owed] == ["Owed"]
        assert len(commitments.list_for_contact(ALFA_ID)) == 2


class TestCollaboratorSnapshots:
    """Tests for list_referencing() and restore()."""

    def test_collaborators_satisfy_protocol(self, coordinator: ReassignmentCoordinator) -> None:
        assert all(
            isinstance(c, ContactReferenceCollaborator) for c in coordinator.collaborators
        )

    def test_restore_reverts_reassignment(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        """Restoring the snapshots undoes every repoint."""
        refs = seed_references(store)
        snapshots = {c.collaborator_name: c.list_referencing() for c in coordinator.collaborators}

        coordinator.reassign_all(ALFA_ID, ALPHA_ID)
        for collaborator in coordinator.collaborators:
            collaborator.restore(snapshots[collaborator.collaborator_name])

        assert store.community_memberships[refs.membership_id].contact_id == ALFA_ID
        assert store.commitment_parties[refs.party_id].contact_id == ALFA_ID
        assert store.relationship_edges[refs.edge_id].introduced_by_contact_id == ALFA_ID
        assert coordinator.dangling_references([ALFA_ID]) != []

    def test_restore_leaves_other_workspaces(
        self, store: InMemoryStore, coordinator: ReassignmentCoordinator
    ) -> None:
        """restore() only replaces the bound workspace's records."""
        other = seed_references(store, workspace_id=SYNTHETIC_WORKSPACE_ID_OTHER)

        for collaborator in coordinator.collaborators:
            collaborator.restore([])

        assert other.membership_id in store.community_memberships
        assert other.party_id in store.commitment_parties

    def test_restore_keeps_key_order(self, store: InMemoryStore) -> None:
        """A deleted record returns before the next surviving record of its workspace."""
        needs_offers = get_needs_offers_repository(store, SYNTHETIC_WORKSPACE_ID)
        first = needs_offers.create(contact_id=ALFA_ID, type="need")
        foreign = get_needs_offers_repository(store, SYNTHETIC_WORKSPACE_ID_OTHER).create(
            contact_id=ALFA_ID, type="offer"
        )
        second = needs_offers.create(contact_id=ALFA_ID, type="need")
        third = needs_offers.create(contact_id=OUTSIDER_ID, type="offer")
        snapshot = needs_offers.list_referencing()

        needs_offers.reassign(ALFA_ID, ALPHA_ID)
        del store.needs_offers[second.id]
        needs_offers.restore(snapshot)

        assert list(store.needs_offers) == [first.id, foreign.id, second.id, third.id]
        assert store.needs_offers[second.id].contact_id == ALFA_ID


class TestCollaboratorCrud:
    """Seeding helpers the CRUD layer uses."""

    def test_replace_interaction_participants(self, store: InMemoryStore) -> None:
        participants = get_interaction_participants_repository(store, SYNTHETIC_WORKSPACE_ID)
        participants.create(interaction_id="int-1", contact_id=ALFA_ID)
        participants.create(interaction_id="int-2", contact_id=ALFA_ID)

        replaced = participants.replace_for_interaction(
            "int-1", [(ALPHA_ID, "host"), (OUTSIDER_ID, None)]
        )

        assert [(p.contact_id, p.role) for p in replaced] == [
            (ALPHA_ID, "host"),
            (OUTSIDER_ID, None),
        ]
        assert {p.contact_id for p in participants.list_for_interaction("int-1")} == {
            ALPHA_ID,
            OUTSIDER_ID,
        }
        assert [p.contact_id for p in participants.list_for_interaction("int-2")] == [ALFA_ID]

    def test_list_for_community(self, store: InMemoryStore) -> None:
        memberships = get_community_memberships_repository(store, SYNTHETIC_WORKSPACE_ID)
        memberships.create(community_id="climbers", contact_id=ALFA_ID, role="organizer")
        memberships.create(community_id="runners", contact_id=ALPHA_ID)

        (member,) = memberships.list_for_community("climbers")

        assert (member.contact_id, member.role) == (ALFA_ID, "organizer")

    def test_needs_offers_follow_contact(self, store: InMemoryStore) -> None:
        needs_offers = get_needs_offers_repository(store, SYNTHETIC_WORKSPACE_ID)
        offer = needs_offers.create(contact_id=ALFA_ID, type="offer", status="matched")

        result = needs_offers.reassign(ALFA_ID, ALPHA_ID)

        assert result.reassigned == 1
        assert store.needs_offers[offer.id].contact_id == ALPHA_ID
        assert store.needs_offers[offer.id].status == "matched"
