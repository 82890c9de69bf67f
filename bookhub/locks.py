"""
Per-submission mutual exclusion.

Every mutation of a submission (rating, decision, field update, delete) runs
inside ``SubmissionLocks.hold(submission_id)``. Different ids never contend;
the same id is strictly serialized. Entries are created on first use and
dropped once no thread holds or waits on them, so the registry does not grow
with the catalog.
"""
import threading
from contextlib import contextmanager
from typing import Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class SubmissionLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    @contextmanager
    def hold(self, submission_id: str):
        key = str(submission_id)
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
