"""Data model types for s3signer.

The request builder is the only mutable type here. Everything the engine
produces (signed requests, canonical forms, errors) is frozen once built.
"""

from __future__ import annotations

import email.utils
import json
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

from s3signer.errors import InvalidHeaderValue, InvalidMethod

DEFAULT_ENDPOINT = "s3.amazonaws.com"
DEFAULT_REGION = "us-east-1"
SERVICE_NAME = "s3"
SCOPE_TERMINATOR = "aws4_request"

# DNS-compatible bucket names may be placed in the Host header.
_VIRTUAL_HOST_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9\-]{1,61}[a-z0-9]$")


class Method(str, Enum):
    """HTTP methods the engine can sign."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    POST = "POST"
    HEAD = "HEAD"

    @classmethod
    def parse(cls, value: str | Method) -> Method:
        if isinstance(value, Method):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise InvalidMethod(str(value))


class SignatureVersion(str, Enum):
    """The closed set of signing variants."""

    V2 = "v2"
    V4 = "v4"


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BytesContent:
    """Raw request or response body."""

    data: bytes = b""
    content_type: str = "application/octet-stream"

    def to_bytes(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class JsonContent:
    """Structured body serialized as compact JSON."""

    value: Any = None
    content_type: str = "application/json"

    def to_bytes(self) -> bytes:
        return json.dumps(self.value, separators=(",", ":"), sort_keys=True).encode("utf-8")


Content = Union[BytesContent, JsonContent]


# ---------------------------------------------------------------------------
# Credentials and signing context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credentials:
    """An access key pair with an optional session token.

    Attributes:
        access_key_id: Public access key identifier.
        secret_access_key: Secret used as (or to derive) the HMAC key.
        session_token: Temporary-credential token, if any.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class SigningContext:
    """Region, service and variant for one signing call.

    ``timestamp`` stays ``None`` until the engine binds the instant it
    captured for the call (see :meth:`at`).
    """

    region: str = DEFAULT_REGION
    service: str = SERVICE_NAME
    variant: SignatureVersion = SignatureVersion.V4
    timestamp: datetime | None = None

    def at(self, timestamp: datetime) -> SigningContext:
        """Return a copy bound to ``timestamp`` (converted to UTC)."""
        return replace(self, timestamp=to_utc(timestamp))

    def _require_timestamp(self) -> datetime:
        if self.timestamp is None:
            raise ValueError("SigningContext has no timestamp bound")
        return self.timestamp

    @property
    def date(self) -> str:
        """Credential-scope date, ``YYYYMMDD``."""
        return self._require_timestamp().strftime("%Y%m%d")

    @property
    def amz_date(self) -> str:
        """ISO 8601 basic timestamp, ``YYYYMMDDThhmmssZ``."""
        return self._require_timestamp().strftime("%Y%m%dT%H%M%SZ")

    @property
    def http_date(self) -> str:
        """RFC 1123 date used by the legacy variant."""
        return email.utils.format_datetime(self._require_timestamp(), usegmt=True)

    @property
    def scope(self) -> str:
        """Credential scope, ``date/region/service/aws4_request``."""
        return f"{self.date}/{self.region}/{self.service}/{SCOPE_TERMINATOR}"


def to_utc(timestamp: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Request model
# ---------------------------------------------------------------------------


class Request:
    """An outgoing request under construction.

    Setters return ``self`` so calls can be chained::

        req = (
            Request("PUT", "my-bucket", "photos/cat.jpg")
            .set_header("x-amz-storage-class", "STANDARD_IA")
            .set_content(BytesContent(data, "image/jpeg"))
        )

    Header names keep the case they were given, but lookups and
    replacements are case-insensitive.
    """

    def __init__(
        self,
        method: str | Method,
        bucket: str | None = None,
        key: str = "",
        headers: Mapping[str, str] | None = None,
        content: Content | None = None,
        timestamp: datetime | None = None,
        endpoint: str = DEFAULT_ENDPOINT,
        scheme: str = "https",
        addressing_style: str = "virtual",
    ) -> None:
        self.method = Method.parse(method)
        self._bucket: str | None = None
        if bucket is not None:
            self.bucket = bucket
        self.key = key
        self.headers: dict[str, str] = {}
        for name, value in (headers or {}).items():
            self.set_header(name, value)
        self.content = content
        self.timestamp = timestamp
        self.endpoint = endpoint
        self.scheme = scheme
        self.addressing_style = addressing_style
        self.query: list[tuple[str, str]] = []
        self.raw_query = ""
        # Engine-owned: set only on the snapshot used for presigning.
        self.expires: int | None = None
        self.extra_query: list[tuple[str, str]] = []

    def __repr__(self) -> str:
        return f"Request({self.method.value} bucket={self._bucket!r} key={self.key!r})"

    # -- Bucket ----------------------------------------------------------------

    @property
    def bucket(self) -> str | None:
        return self._bucket

    @bucket.setter
    def bucket(self, value: str | None) -> None:
        self._bucket = value.lower() if value else None

    # -- Chained setters -------------------------------------------------------

    def set_header(self, name: str, value: str) -> Request:
        """Set a header, replacing any existing header of the same name."""
        if not isinstance(name, str) or not isinstance(value, str):
            raise InvalidHeaderValue(str(name))
        self.remove_header(name)
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> Request:
        lower = name.lower()
        for existing in [k for k in self.headers if k.lower() == lower]:
            del self.headers[existing]
        return self

    def get_header(self, name: str, default: str | None = None) -> str | None:
        lower = name.lower()
        for existing, value in self.headers.items():
            if existing.lower() == lower:
                return value
        return default

    def set_query(self, name: str, value: str = "") -> Request:
        """Add a sub-resource or query parameter (e.g. ``acl`` or ``versionId``)."""
        self.query.append((name, value))
        return self

    def set_raw_query(self, query_string: str) -> Request:
        """Add parameters from an undecoded query string.

        A string such as ``"list-type=2&prefix=a%2Fb"`` is split on '&' and then on the first '=' when the request
        is canonicalized; pairs set with :meth:`set_query` are kept alongside.
        """
        query_string = query_string.lstrip("?")
        if query_string:
            self.raw_query = f"{self.raw_query}&{query_string}" if self.raw_query else query_string
        return self

    def set_content(self, content: Content | None) -> Request:
        self.content = content
        return self

    def at(self, timestamp: datetime) -> Request:
        """Pin the signing timestamp instead of reading the clock."""
        self.timestamp = timestamp
        return self

    # -- Derived values --------------------------------------------------------

    @property
    def body(self) -> bytes:
        if self.content is None:
            return b""
        return self.content.to_bytes()

    def content_type(self) -> str:
        """Explicit Content-Type header, else the content's type.

        Requests without a body have no default type.
        """
        explicit = self.get_header("content-type")
        if explicit is not None:
            return explicit
        if self.content is not None and self.body:
            return self.content.content_type
        return ""

    def uses_virtual_host(self) -> bool:
        return (
            self.addressing_style == "virtual"
            and self._bucket is not None
            and _VIRTUAL_HOST_BUCKET_RE.match(self._bucket) is not None
        )

    @property
    def host(self) -> str:
        if self.uses_virtual_host():
            return f"{self._bucket}.{self.endpoint}"
        return self.endpoint

    @property
    def path(self) -> str:
        """Unencoded request path as seen by the server."""
        if self.uses_virtual_host():
            return "/" + self.key
        return f"/{self._bucket}/{self.key}"

    def copy(self) -> Request:
        """Snapshot the builder so the engine can mutate it freely."""
        clone = Request.__new__(Request)
        clone.__dict__.update(self.__dict__)
        clone.headers = dict(self.headers)
        clone.query = list(self.query)
        clone.extra_query = list(self.extra_query)
        return clone


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CanonicalForm:
    """The canonical serialization of a request.

    Attributes:
        variant: Signature version that produced this form.
        canonical_string: Legacy string-to-sign or v4 canonical request.
        signed_headers: Lower-cased names of the signed headers, sorted.
        payload_hash: Hex SHA-256 of the body, "UNSIGNED-PAYLOAD", or "" (legacy).
        canonical_uri: Percent-encoded path.
        canonical_query: Canonical query string.
    """

    variant: SignatureVersion
    canonical_string: str
    signed_headers: tuple[str, ...] = ()
    payload_hash: str = ""
    canonical_uri: str = "/"
    canonical_query: str = ""


@dataclass(frozen=True)
class SignedRequest:
    """A request ready for the transport: immutable once produced."""

    method: Method
    url: str
    headers: Mapping[str, str]
    body: bytes
    signature: str
    canonical: CanonicalForm

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class HttpResponse:
    """What the transport hands back."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class Exchange:
    """A request/response pair kept for diagnostics."""

    request: SignedRequest | None
    response: HttpResponse
