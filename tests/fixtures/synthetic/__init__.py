"""Synthetic deterministic fixtures for PCRM tests.

These fixtures provide reproducible contacts and referencing records.
All IDs are stable constants to ensure deterministic test behavior.
"""

from tests.fixtures.synthetic.contacts_fixture import (
    ALFA_ID,
    ALPHA_ID,
    FIXED_MERGE_TIME,
    FIXED_TIME,
    OTHER_WORKSPACE_CONTACT_ID,
    OUTSIDER_ID,
    SYNTHETIC_CONTACTS,
    SYNTHETIC_WORKSPACE_ID,
    SYNTHETIC_WORKSPACE_ID_OTHER,
    SeededReferences,
    get_contact_data,
    make_contact,
    seed_contacts,
    seed_references,
    snapshot_store,
)

__all__ = [
    "ALFA_ID",
    "ALPHA_ID",
    "FIXED_MERGE_TIME",
    "FIXED_TIME",
    "OTHER_WORKSPACE_CONTACT_ID",
    "OUTSIDER_ID",
    "SYNTHETIC_CONTACTS",
    "SYNTHETIC_WORKSPACE_ID",
    "SYNTHETIC_WORKSPACE_ID_OTHER",
    "SeededReferences",
    "get_contact_data",
    "make_contact",
    "seed_contacts",
    "seed_references",
    "snapshot_store",
]
