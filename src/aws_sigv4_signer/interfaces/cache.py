"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from typing import Protocol, runtime_checkable

# (sha256 hex digest of the secret access key, YYYYMMDD, region, service)
SigningKeyCacheKey = tuple[str, str, str, str]


@runtime_checkable
class SigningKeyCache(Protocol):
    """Storage for derived SigV4 signing keys.

    Implementations may evict entries at any time, but ``get`` must only ever
    return a complete key previously passed to ``set`` for the same cache key.
    """

    def get(self, key: SigningKeyCacheKey) -> bytes | None: ...

    def set(self, key: SigningKeyCacheKey, value: bytes) -> None: ...

    def clear(self) -> None: ...
