"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from dataclasses import dataclass, field
from typing import Any

# Header whose presence switches signing into query (presigned) mode and whose
# value is used as X-Amz-Expires.
PRESIGNED_EXPIRES_HEADER = "presigned-expires"


@dataclass
class AWSRequest:
    """A minimal, transport-agnostic HTTP request description.

    Header names are stored exactly as supplied. Lookups through
    :meth:`get_header` and :meth:`has_header` are case-insensitive, and
    :meth:`set_header` replaces any existing header regardless of its casing.

    :param method: HTTP method, e.g. ``GET``.
    :param path: Request path. May already be percent-encoded. If it contains a
        ``?`` and ``query`` is not given, everything after the first ``?`` is
        treated as the query string.
    :param query: Raw, pre-serialized query string without the leading ``?``.
    :param headers: Mapping of header name to a scalar value.
    :param body: Raw payload or ``None``.
    :param region: Region the request targets, used when the signing
        properties don't carry one.
    :param presign_expires: Lifetime in seconds of a presigned request. Setting
        it has the same effect as sending a ``presigned-expires`` header.
    """

    method: str
    path: str = "/"
    query: str | None = None
    headers: dict[str, Any] = field(default_factory=dict)
    body: bytes | str | None = None
    region: str | None = None
    presign_expires: int | None = None

    def __post_init__(self) -> None:
        if self.query is None and "?" in self.path:
            self.path, self.query = self.path.split("?", 1)

    @property
    def url_path(self) -> str:
        """The request target: path followed by ``?query`` when a query exists."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def is_presigned(self) -> bool:
        # An empty or None header value does not count as a presign request.
        return self.presign_expires is not None or bool(
            self.headers.get(PRESIGNED_EXPIRES_HEADER)
        )

    def get_header(self, name: str, default: Any = None) -> Any:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def has_header(self, name: str) -> bool:
        lowered = name.lower()
        return any(key.lower() == lowered for key in self.headers)

    def set_header(self, name: str, value: Any) -> None:
        self.remove_header(name)
        self.headers[name] = value

    def remove_header(self, name: str) -> None:
        lowered = name.lower()
        for key in [key for key in self.headers if key.lower() == lowered]:
            del self.headers[key]

    def append_query(self, query: str) -> None:
        """Append serialized ``k=v`` pairs to the existing query string."""
        if self.query:
            self.query = f"{self.query}&{query}"
        else:
            self.query = query
