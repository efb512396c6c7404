"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from aws_sigv4_signer import LRUSigningKeyCache
from aws_sigv4_signer.interfaces.cache import SigningKeyCache


def _key(n: int) -> tuple[str, str, str, str]:
    return (f"digest-{n}", "20130524", "us-east-1", "s3")


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestLRUSigningKeyCache:
    def test_satisfies_protocol(self):
        assert isinstance(LRUSigningKeyCache(), SigningKeyCache)

    def test_get_missing(self):
        assert LRUSigningKeyCache().get(_key(1)) is None

    def test_set_and_get(self):
        cache = LRUSigningKeyCache()
        cache.set(_key(1), b"k" * 32)
        assert cache.get(_key(1)) == b"k" * 32
        assert _key(1) in cache

    def test_evicts_least_recently_used(self):
        cache = LRUSigningKeyCache(max_entries=2)
        cache.set(_key(1), b"one")
        cache.set(_key(2), b"two")
        # Touch the first entry so the second becomes the eviction candidate.
        assert cache.get(_key(1)) == b"one"
        cache.set(_key(3), b"three")
        assert len(cache) == 2
        assert cache.get(_key(2)) is None
        assert cache.get(_key(1)) == b"one"
        assert cache.get(_key(3)) == b"three"

    def test_max_age(self):
        clock = FakeClock()
        cache = LRUSigningKeyCache(max_age=60, clock=clock)
        cache.set(_key(1), b"one")
        clock.now = 60
        assert cache.get(_key(1)) == b"one"
        clock.now = 61
        assert cache.get(_key(1)) is None
        assert len(cache) == 0

    def test_clear(self):
        cache = LRUSigningKeyCache()
        cache.set(_key(1), b"one")
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.parametrize("max_entries", [0, -1])
    def test_invalid_capacity(self, max_entries):
        with pytest.raises(ValueError):
            LRUSigningKeyCache(max_entries=max_entries)

    def test_concurrent_access_never_returns_partial_values(self):
        cache = LRUSigningKeyCache(max_entries=8)
        values = {n: bytes([n]) * 32 for n in range(16)}

        def worker(n: int) -> list[bytes | None]:
            seen = []
            for _ in range(200):
                cache.set(_key(n), values[n])
                seen.append(cache.get(_key((n + 1) % 16)))
            return seen

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(worker, range(16)))

        for n, seen in enumerate(results):
            expected = values[(n + 1) % 16]
            assert all(value is None or value == expected for value in seen)
        assert len(cache) <= 8
