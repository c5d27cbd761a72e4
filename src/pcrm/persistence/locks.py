"""Per-workspace mutual exclusion for merges.

A merge snapshots and, on failure, restores whole-workspace collections, so
two merges in the same workspace must not interleave. Merges in different
workspaces proceed in parallel.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class WorkspaceLockRegistry:
    """Thread-safe registry handing out one re-entrant lock per workspace."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, workspace_id: str) -> threading.RLock:
        """Return the lock for a workspace, creating it on first use."""
        with self._guard:
            lock = self._locks.get(workspace_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[workspace_id] = lock
            return lock

    @contextmanager
    def hold(self, workspace_id: str) -> Iterator[None]:
        """Hold the workspace lock for the duration of the block."""
        lock = self.lock_for(workspace_id)
        lock.acquire()
        logger.debug("Acquired merge lock for workspace %s", workspace_id)
        try:
            yield
        finally:
            lock.release()
            logger.debug("Released merge lock for workspace %s", workspace_id)

    def clear(self) -> None:
        """Forget all locks. Only safe when no merge is in flight."""
        with self._guard:
            self._locks.clear()
