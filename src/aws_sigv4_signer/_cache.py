"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable

from .interfaces.cache import SigningKeyCacheKey

DEFAULT_MAX_ENTRIES = 50


class LRUSigningKeyCache:
    """Bounded, thread-safe store for derived signing keys.

    Entries are evicted least-recently-used first once ``max_entries`` is
    exceeded. When ``max_age`` is given, entries older than that many seconds
    are treated as missing and dropped on access.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_age: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._max_age = max_age
        self._clock = clock
        self._entries: OrderedDict[SigningKeyCacheKey, tuple[bytes, float]] = (
            OrderedDict()
        )
        self._lock = threading.Lock()

    def get(self, key: SigningKeyCacheKey) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, inserted_at = entry
            if self._max_age is not None and (
                self._clock() - inserted_at > self._max_age
            ):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: SigningKeyCacheKey, value: bytes) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
