"""PCRM workspace role policy.

The merge core performs no authorization. The handler in front of it checks
the acting member's role with the predicates below before calling
ContactMergeService.

Roles are strictly ordered: owner > admin > member > assistant > read-only.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Workspace membership roles."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    ASSISTANT = "assistant"
    READ_ONLY = "read-only"


ROLE_PRIORITY: dict[Role, int] = {
    Role.OWNER: 5,
    Role.ADMIN: 4,
    Role.MEMBER: 3,
    Role.ASSISTANT: 2,
    Role.READ_ONLY: 1,
}

ALL_ROLES: frozenset[str] = frozenset(r.value for r in Role)


def is_valid_role(role: str) -> bool:
    return role in ALL_ROLES


def role_at_least(role: Role | str, minimum: Role | str) -> bool:
    """Check whether a role ranks at or above a minimum role.

    Unknown role strings never satisfy any minimum.
    """
    if not is_valid_role(role):
        return False
    return ROLE_PRIORITY[Role(role)] >= ROLE_PRIORITY[Role(minimum)]


def can_edit_contacts(role: Role | str) -> bool:
    return role_at_least(role, Role.ASSISTANT)


def can_merge_contacts(role: Role | str) -> bool:
    """Merging edits every participating contact, so it needs contact-edit rights."""
    return can_edit_contacts(role)
