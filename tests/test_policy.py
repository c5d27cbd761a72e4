"""Tests for workspace role policy predicates."""

from __future__ import annotations

import pytest

from pcrm.policy import Role, can_edit_contacts, can_merge_contacts, role_at_least


class TestRoleOrdering:
    """Tests for role_at_least()."""

    def test_roles_are_strictly_ordered(self) -> None:
        ordered = [Role.READ_ONLY, Role.ASSISTANT, Role.MEMBER, Role.ADMIN, Role.OWNER]

        for lower, higher in zip(ordered, ordered[1:], strict=False):
            assert role_at_least(higher, lower)
            assert not role_at_least(lower, higher)

    def test_unknown_role_never_qualifies(self) -> None:
        assert not role_at_least("superuser", Role.READ_ONLY)


class TestMergePermission:
    """Tests for can_merge_contacts()."""

    @pytest.mark.parametrize("role", ["owner", "admin", "member", "assistant"])
    def test_assistant_and_above_may_merge(self, role: str) -> None:
        assert can_merge_contacts(role)
        assert can_edit_contacts(role)

    def test_read_only_may_not_merge(self) -> None:
        assert not can_merge_contacts(Role.READ_ONLY)
        assert not can_merge_contacts("read-only")
