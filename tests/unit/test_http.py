"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from datetime import UTC, datetime, timedelta

from aws_sigv4_signer import AWSCredentialIdentity, AWSRequest


class TestAWSRequest:
    def test_path_with_query_is_split(self):
        request = AWSRequest(method="GET", path="/bucket/key?versionId=1&x=2")
        assert request.path == "/bucket/key"
        assert request.query == "versionId=1&x=2"
        assert request.url_path == "/bucket/key?versionId=1&x=2"

    def test_explicit_query_keeps_path(self):
        request = AWSRequest(method="GET", path="/a?b", query="c=d")
        assert request.path == "/a?b"
        assert request.query == "c=d"

    def test_url_path_without_query(self):
        assert AWSRequest(method="GET", path="/a").url_path == "/a"

    def test_header_lookup_is_case_insensitive(self):
        request = AWSRequest(method="GET", headers={"Content-Type": "text/plain"})
        assert request.get_header("content-type") == "text/plain"
        assert request.has_header("CONTENT-TYPE")
        assert request.get_header("missing", "default") == "default"

    def test_set_header_replaces_any_casing(self):
        request = AWSRequest(method="GET", headers={"x-amz-date": "old", "Host": "h"})
        request.set_header("X-Amz-Date", "new")
        assert request.headers == {"Host": "h", "X-Amz-Date": "new"}

    def test_append_query(self):
        request = AWSRequest(method="GET", path="/")
        request.append_query("a=1")
        assert request.url_path == "/?a=1"
        request.append_query("b=2")
        assert request.url_path == "/?a=1&b=2"

    def test_presigned_toggle(self):
        assert not AWSRequest(method="GET").is_presigned
        assert AWSRequest(method="GET", presign_expires=60).is_presigned
        assert AWSRequest(
            method="GET", headers={"presigned-expires": "60"}
        ).is_presigned
        # Only the literal lowercase header name switches modes.
        assert not AWSRequest(
            method="GET", headers={"Presigned-Expires": "60"}
        ).is_presigned


class TestAWSCredentialIdentity:
    def test_not_expired_without_expiration(self):
        identity = AWSCredentialIdentity(access_key_id="a", secret_access_key="s")
        assert not identity.is_expired

    def test_expiration(self):
        past = datetime.now(UTC) - timedelta(minutes=1)
        future = datetime.now(UTC) + timedelta(minutes=5)
        assert AWSCredentialIdentity(
            access_key_id="a", secret_access_key="s", expiration=past
        ).is_expired
        assert not AWSCredentialIdentity(
            access_key_id="a", secret_access_key="s", expiration=future
        ).is_expired

    def test_repr_hides_secrets(self):
        identity = AWSCredentialIdentity(
            access_key_id="AKID", secret_access_key="SECRET", session_token="TOKEN"
        )
        assert "SECRET" not in repr(identity)
        assert "TOKEN" not in repr(identity)
        assert "AKID" in repr(identity)
