"""Tests for the request model and value types."""

from datetime import datetime, timedelta, timezone

import pytest

from s3signer.errors import InvalidHeaderValue, InvalidMethod
from s3signer.models import (
    BytesContent,
    Credentials,
    JsonContent,
    Method,
    Request,
    SigningContext,
)


class TestMethod:
    def test_parse_case_insensitive(self):
        assert Method.parse("get") is Method.GET
        assert Method.parse(Method.HEAD) is Method.HEAD

    def test_unknown_method(self):
        with pytest.raises(InvalidMethod):
            Method.parse("PATCH")

    def test_request_rejects_unknown_method(self):
        with pytest.raises(InvalidMethod):
            Request("OPTIONS", "bucket")


class TestRequest:
    """The mutable request builder."""

    def test_bucket_lower_cased(self):
        assert Request("GET", "MyBucket").bucket == "mybucket"

    def test_headers_case_insensitive(self):
        request = Request("GET", "bucket").set_header("Content-Type", "a")
        request.set_header("content-type", "b")
        assert request.headers == {"content-type": "b"}
        assert request.get_header("CONTENT-TYPE") == "b"

    def test_header_value_must_be_string(self):
        with pytest.raises(InvalidHeaderValue):
            Request("GET", "bucket").set_header("x-amz-meta-n", 1)

    def test_constructor_headers(self):
        request = Request("GET", "bucket", headers={"X-Amz-Acl": "private"})
        assert request.get_header("x-amz-acl") == "private"

    def test_virtual_host(self):
        request = Request("GET", "bucket", "a/b")
        assert request.host == "bucket.s3.amazonaws.com"
        assert request.path == "/a/b"

    def test_path_style(self):
        request = Request("GET", "bucket", "a/b", addressing_style="path")
        assert request.host == "s3.amazonaws.com"
        assert request.path == "/bucket/a/b"

    def test_bucket_level_path(self):
        assert Request("PUT", "bucket", addressing_style="path").path == "/bucket/"
        assert Request("PUT", "bucket").path == "/"

    def test_content_type_resolution(self):
        assert Request("GET", "bucket").content_type() == ""
        assert Request("PUT", "b").set_content(BytesContent(b"")).content_type() == ""
        assert Request("PUT", "b").set_content(BytesContent(b"x")).content_type() == (
            "application/octet-stream"
        )
        explicit = Request("PUT", "b").set_header("Content-Type", "text/csv")
        assert explicit.set_content(BytesContent(b"x")).content_type() == "text/csv"

    def test_copy_is_independent(self):
        request = Request("GET", "bucket").set_header("a", "1").set_query("acl")
        clone = request.copy()
        clone.set_header("b", "2")
        clone.set_query("tagging")
        clone.extra_query.append(("x", "y"))
        assert request.headers == {"a": "1"}
        assert request.query == [("acl", "")]
        assert request.extra_query == []


class TestContent:
    def test_bytes(self):
        assert BytesContent(b"abc").to_bytes() == b"abc"

    def test_json_compact_and_sorted(self):
        content = JsonContent({"z": 1, "a": "é"})
        assert content.to_bytes() == b'{"a":"\\u00e9","z":1}'
        assert content.content_type == "application/json"


class TestSigningContext:
    """Date formats derived from the bound timestamp."""

    def test_formats(self):
        ctx = SigningContext(region="eu-west-1").at(datetime(2013, 5, 24, 13, 5, 9, tzinfo=timezone.utc))
        assert ctx.date == "20130524"
        assert ctx.amz_date == "20130524T130509Z"
        assert ctx.scope == "20130524/eu-west-1/s3/aws4_request"
        assert ctx.http_date == "Fri, 24 May 2013 13:05:09 GMT"

    def test_naive_is_utc(self):
        ctx = SigningContext().at(datetime(2013, 5, 24))
        assert ctx.amz_date == "20130524T000000Z"

    def test_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        ctx = SigningContext().at(datetime(2013, 5, 24, 1, 0, tzinfo=plus_two))
        assert ctx.amz_date == "20130523T230000Z"
        assert ctx.date == "20130523"

    def test_unbound(self):
        with pytest.raises(ValueError):
            SigningContext().amz_date


class TestCredentials:
    def test_repr_hides_secret(self):
        creds = Credentials("AKID", "supersecret", "token123")
        assert "supersecret" not in repr(creds)
        assert "token123" not in repr(creds)
        assert "AKID" in repr(creds)
