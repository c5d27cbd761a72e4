"""Pytest configuration and fixtures for PCRM tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from pcrm.audit.sink import InMemoryAuditSink
from pcrm.config import (
    AUDIT_LOG_PATH_ENV,
    DEDUPE_CITY_BONUS_ENV,
    DEDUPE_EMAIL_WEIGHT_ENV,
    DEDUPE_NAME_THRESHOLD_ENV,
    DEDUPE_NAME_WEIGHT_ENV,
    DEDUPE_ORG_BONUS_ENV,
    DEDUPE_PHONE_WEIGHT_ENV,
    OTEL_ENABLED_ENV,
    OTEL_EXPORTER_ENV,
    OTEL_SERVICE_NAME_ENV,
)
from pcrm.persistence.store import InMemoryStore

PCRM_ENV_VARS = (
    AUDIT_LOG_PATH_ENV,
    DEDUPE_CITY_BONUS_ENV,
    DEDUPE_EMAIL_WEIGHT_ENV,
    DEDUPE_NAME_THRESHOLD_ENV,
    DEDUPE_NAME_WEIGHT_ENV,
    DEDUPE_ORG_BONUS_ENV,
    DEDUPE_PHONE_WEIGHT_ENV,
    OTEL_ENABLED_ENV,
    OTEL_EXPORTER_ENV,
    OTEL_SERVICE_NAME_ENV,
)


@pytest.fixture(autouse=True)
def clean_pcrm_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without PCRM overrides from the developer's shell.

    Tests that need a setting apply it with monkeypatch.setenv.
    """
    for key in PCRM_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def store() -> Iterator[InMemoryStore]:
    """Provide an empty in-memory store, cleared after the test."""
    store = InMemoryStore()
    yield store
    store.clear()


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    """Provide an in-memory audit sink for testing."""
    return InMemoryAuditSink()
