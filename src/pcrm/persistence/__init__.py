"""PCRM persistence: in-memory store, repositories and the compensation executor."""

from pcrm.persistence.store import InMemoryStore

__all__ = ["InMemoryStore"]
