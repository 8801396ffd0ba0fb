import threading
from contextlib import contextmanager
from typing import Iterator

from ccwatch.errors import LockFailure
from ccwatch.models import Settings, UsageSnapshot

_DEFAULT_LOCK_TIMEOUT_SECONDS = 1.0


class StateStore:
    """
    StateStore: Is a thread-safe holder for the latest usage snapshot
    and the current settings.

    Each cell has its own lock so a snapshot write never waits on a
    settings read and vice versa. Both records are frozen, so values
    handed out can never be changed behind the store's back. Locks
    only cover the swap of a cell; callers fetch before they write.
    """

    def __init__(
        self,
        settings: "Settings | None" = None,
        lock_timeout: "float" = _DEFAULT_LOCK_TIMEOUT_SECONDS,
    ) -> "None":
        self._snapshot_lock: "threading.Lock" = threading.Lock()
        self._settings_lock: "threading.Lock" = threading.Lock()
        self._snapshot: "UsageSnapshot | None" = None
        self._settings: "Settings" = settings if settings is not None else Settings()
        self._lock_timeout = lock_timeout

    @contextmanager
    def _hold(self, lock: "threading.Lock", cell: "str") -> "Iterator[None]":
        if not lock.acquire(timeout=self._lock_timeout):
            raise LockFailure(f"Failed to lock {cell} state")
        try:
            yield
        finally:
            lock.release()

    def get_snapshot(self) -> "UsageSnapshot | None":
        """
        returns the latest snapshot, or None before the first fetch
        has completed.
        """
        with self._hold(self._snapshot_lock, "snapshot"):
            return self._snapshot

    def set_snapshot(self, snapshot: "UsageSnapshot") -> "UsageSnapshot":
        """
        replaces the stored snapshot. The last write wins; the
        written value is returned so the writer can hand back exactly
        what it stored.
        """
        with self._hold(self._snapshot_lock, "snapshot"):
            self._snapshot = snapshot
        return snapshot

    def get_settings(self) -> "Settings":
        with self._hold(self._settings_lock, "settings"):
            return self._settings

    def set_settings(self, settings: "Settings") -> "Settings":
        with self._hold(self._settings_lock, "settings"):
            previous = self._settings
            self._settings = settings
        return previous
