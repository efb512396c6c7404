"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Construction of the SigV4 canonical request.
"""

from collections.abc import Mapping
from decimal import Decimal
from hashlib import sha256
from typing import Any
from urllib.parse import quote

from ._http import PRESIGNED_EXPIRES_HEADER, AWSRequest
from .exceptions import InvalidHeaderValueException

UNSIGNABLE_HEADERS: frozenset[str] = frozenset(
    (
        "authorization",
        "content-type",
        "content-length",
        "user-agent",
        PRESIGNED_EXPIRES_HEADER,
        "expect",
        "x-amzn-trace-id",
    )
)
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
CONTENT_SHA256_HEADER = "X-Amz-Content-Sha256"


def is_signable_header(name: str) -> bool:
    lowered = name.lower()
    if lowered.startswith("x-amz-"):
        return True
    return lowered not in UNSIGNABLE_HEADERS


class Canonicalizer:
    """Builds the canonical request string that AWS reconstructs to verify a
    signature.

    The SigV4 specification defines the canonical request to be:
        <HTTPMethod>\\n
        <CanonicalURI>\\n
        <CanonicalQueryString>\\n
        <CanonicalHeaders>\\n
        <SignedHeaders>\\n
        <HashedPayload>
    """

    def canonical_request(
        self, *, request: AWSRequest, service: str, presigned: bool = False
    ) -> str:
        canonical_path = self.canonical_path(path=request.path, service=service)
        canonical_headers = self.canonical_headers(headers=request.headers)
        signed_headers = self.signed_header_names(headers=request.headers)
        body_hash = self.body_hash(
            request=request, presigned=presigned, service=service
        )
        return (
            f"{request.method.upper()}\n"
            f"{canonical_path}\n"
            f"{request.query or ''}\n"
            f"{canonical_headers}\n"
            f"{signed_headers}\n"
            f"{body_hash}"
        )

    def canonical_path(self, *, path: str, service: str) -> str:
        if not path:
            path = "/"
        # S3 expects the path exactly as the caller encoded it.
        if service == "s3":
            return path
        return "/".join(quote(string=segment, safe="") for segment in path.split("/"))

    def signed_header_names(self, *, headers: Mapping[str, Any]) -> str:
        names = (name.lower() for name in headers)
        return ";".join(sorted(name for name in names if is_signable_header(name)))

    def canonical_headers(self, *, headers: Mapping[str, Any]) -> str:
        # sorted() is stable, so duplicate names keep their original order.
        pairs = sorted(
            ((name.lower(), value) for name, value in headers.items()),
            key=lambda pair: pair[0],
        )
        lines = [
            f"{name}:{self._normalize_header_value(name=name, value=value)}"
            for name, value in pairs
            if is_signable_header(name)
        ]
        return "\n".join(lines) + "\n"

    def _normalize_header_value(self, *, name: str, value: Any) -> str:
        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidHeaderValueException(name, value) from e
        elif isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (int, float, Decimal)):
            value = str(value)
        elif not isinstance(value, str):
            raise InvalidHeaderValueException(name, value)
        return " ".join(value.split())

    def body_hash(
        self, *, request: AWSRequest, presigned: bool, service: str
    ) -> str:
        body = request.body
        if presigned and service == "s3" and not body:
            return UNSIGNED_PAYLOAD

        content_sha256 = request.get_header(CONTENT_SHA256_HEADER)
        if content_sha256:
            return str(content_sha256)

        if not body:
            return EMPTY_SHA256_HASH
        if isinstance(body, str):
            body = body.encode("utf-8")
        return sha256(body).hexdigest()
