"""
Serialization of task generation per (user, group) chain.

Generation reads the chain tail (max cycle / max exec_date) and then writes
new cycles after it; two concurrent calls for the same chain must not both
read the same tail. Different chains run in parallel.

In-process: one threading.Lock per chain key, owned by a GenerationLocks
instance (the app keeps one in app.state). Across processes on PostgreSQL: a
transaction-scoped advisory lock, released by the commit/rollback that ends
the generation transaction.
"""
import hashlib
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import func, select
from sqlalchemy.orm import Session


def advisory_key(user_id: int, group: str) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock."""
    digest = hashlib.blake2b(f"{user_id}:{group}".encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class _ChainLock:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0  # threads holding or waiting for `lock`


class GenerationLocks:
    """Per-chain locks; an entry lives only while some thread holds or awaits it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[tuple[int, str], _ChainLock] = {}

    def _acquire_entry(self, key: tuple[int, str]) -> _ChainLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _ChainLock()
                self._locks[key] = entry
            entry.holders += 1
            return entry

    def _release_entry(self, key: tuple[int, str], entry: _ChainLock) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, user_id: int, group: str, db: Session | None = None) -> Iterator[None]:
        key = (user_id, group)
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                if db is not None and db.get_bind().dialect.name == "postgresql":
                    db.execute(select(func.pg_advisory_xact_lock(advisory_key(user_id, group))))
                yield
        finally:
            self._release_entry(key, entry)
