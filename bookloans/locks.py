from __future__ import annotations
from contextlib import contextmanager
from typing import Dict, Iterator
import threading


class _Slot:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLocks:
    """One re-entrant lock per key (isbn, user id, loan id).

    A key's lock exists only while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._slots: Dict[str, _Slot] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _Slot()
            slot.holders += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._guard:
                slot.holders -= 1
                if slot.holders == 0:
                    del self._slots[key]

    def is_held(self, key: str) -> bool:
        with self._guard:
            return key in self._slots

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)
