"""
Suppression of immediately repeated notifications
"""
import threading
from typing import Dict, Optional


def edit_signature(edit) -> str:
    """Signature compared between consecutive edits on one wiki"""
    return f"{edit.page}:{edit.editor}"


class RepeatFilter:
    """
    Remembers the last (page, editor) signature seen per wiki

    Only the immediately preceding signature is kept for each key, so
    A, B, A is never treated as a repeat. Each key has its own lock so
    accounts handled on different threads can share one filter.
    """

    def __init__(self):
        self._last: Dict[str, str] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def is_repeat_and_record(self, key: str, signature: str) -> bool:
        """Record signature for key and report whether it matched the previous one"""
        with self._lock_for(key):
            previous = self._last.get(key)
            self._last[key] = signature
        return previous == signature

    def last_signature(self, key: str) -> Optional[str]:
        return self._last.get(key)
