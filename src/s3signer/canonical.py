"""Request canonicalization for both signature versions.

The canonical form is the exact byte sequence the client signs and the
service recomputes. Anything that is not a pure function of the request
snapshot and the bound signing context is kept out of here: the clock is
never read, and header/query ordering is always the byte order of the
encoded names.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sig-v4-header-based-auth.html
    - https://docs.aws.amazon.com/AmazonS3/latest/userguide/RESTAuthentication.html
"""

import base64
import hashlib
import logging
import re
import urllib.parse

from s3signer.errors import InvalidHeaderValue, MissingBucket
from s3signer.models import CanonicalForm, Request, SignatureVersion, SigningContext

logger = logging.getLogger(__name__)

UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

# Transport-managed headers never covered by a v4 signature.
UNSIGNABLE_HEADERS = frozenset(
    {
        "authorization",
        "content-length",
        "user-agent",
        "expect",
        "x-amzn-trace-id",
    }
)

# Provider-prefixed headers included in the legacy string-to-sign.
PROVIDER_HEADER_PREFIX = "x-amz-"

# Query parameters that are part of the legacy canonical resource.
LEGACY_SUBRESOURCES = frozenset(
    {
        "acl",
        "cors",
        "delete",
        "lifecycle",
        "location",
        "logging",
        "notification",
        "partNumber",
        "policy",
        "requestPayment",
        "response-cache-control",
        "response-content-disposition",
        "response-content-encoding",
        "response-content-language",
        "response-content-type",
        "response-expires",
        "restore",
        "tagging",
        "torrent",
        "uploadId",
        "uploads",
        "versionId",
        "versioning",
        "versions",
        "website",
    }
)

# Printable ASCII minus '%', kept verbatim when a header value is encoded.
_HEADER_SAFE = "".join(chr(c) for c in range(0x20, 0x7F) if chr(c) != "%")

_WHITESPACE_RE = re.compile(r"\s+")
_PRINTABLE_ASCII_RE = re.compile(r"^[\x20-\x7e]*\Z")


# ---------------------------------------------------------------------------
# Encoding primitives
# ---------------------------------------------------------------------------


def uri_encode(s: str, encode_slash: bool = True) -> str:
    """S3-compatible URI encoding.

    Characters A-Z, a-z, 0-9, '-', '_', '.', '~' are not encoded.
    All other characters are percent-encoded with uppercase hex.
    Spaces become %20 (not +).

    Args:
        s: The string to encode.
        encode_slash: If True (default), '/' is encoded as %2F.
                     If False, '/' is left as-is.

    Returns:
        The URI-encoded string.
    """
    safe = "-_.~" if encode_slash else "-_.~/"
    return urllib.parse.quote(s, safe=safe)


def uri_encode_path(path: str) -> str:
    """URI-encode a path, preserving forward slashes."""
    if not path:
        return "/"
    encoded = uri_encode(path, encode_slash=False)
    if not encoded.startswith("/"):
        encoded = "/" + encoded
    return encoded


def encode_header_value(value: str) -> str:
    """Make a header value safe to sign and transmit.

    Printable ASCII values are returned unchanged. Values containing anything
    else (non-ASCII text, CR, LF or other control characters) are UTF-8
    percent-encoded, keeping printable ASCII verbatim, so the value that is
    signed is exactly the value that is sent.

    Raises:
        InvalidHeaderValue: If ``value`` is not a string.
    """
    if not isinstance(value, str):
        raise InvalidHeaderValue(repr(value))
    if _PRINTABLE_ASCII_RE.match(value):
        return value
    return urllib.parse.quote(value, safe=_HEADER_SAFE)


def trim_header_value(value: str) -> str:
    """Strip the value and collapse internal whitespace runs to one space."""
    return _WHITESPACE_RE.sub(" ", value.strip())


def hash_payload(body: bytes) -> str:
    """Hex SHA-256 of the body."""
    if not body:
        return EMPTY_SHA256
    return hashlib.sha256(body).hexdigest()


def content_md5(body: bytes) -> str:
    """Base64 MD5 of the body, or an empty string for an empty body."""
    if not body:
        return ""
    return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")


# ---------------------------------------------------------------------------
# Query strings
# ---------------------------------------------------------------------------


def parse_query_string(query_string: str) -> list[tuple[str, str]]:
    """Split a raw query string into decoded ``(name, value)`` pairs.

    Pairs split on '&' then on the first '='. Parameters without '=' get an
    empty value (e.g. ``acl``).
    """
    params: list[tuple[str, str]] = []
    if not query_string:
        return params
    for pair in query_string.lstrip("?").split("&"):
        if not pair:
            continue
        if "=" in pair:
            name, value = pair.split("=", 1)
        else:
            name = pair
            value = ""
        params.append((urllib.parse.unquote_plus(name), urllib.parse.unquote_plus(value)))
    return params


def build_canonical_query_string(params: list[tuple[str, str]]) -> str:
    """Encode, sort and join query parameters.

    Each name and value is URI-encoded first; the encoded pairs are then
    sorted by encoded name and, for repeated names, by encoded value.

    Args:
        params: Decoded ``(name, value)`` pairs.

    Returns:
        The canonical query string (no leading '?').
    """
    encoded = sorted(
        (uri_encode(name, encode_slash=True), uri_encode(value, encode_slash=True))
        for name, value in params
    )
    return "&".join(f"{name}={value}" for name, value in encoded)


def request_query_params(request: Request) -> list[tuple[str, str]]:
    """Decoded parameters from the raw query string followed by those set as pairs."""
    return parse_query_string(request.raw_query) + request.query


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


def normalize_headers(headers: dict[str, str]) -> dict[str, str]:
    """Lower-case names and trim values. Values must already be strings."""
    lower_headers: dict[str, str] = {}
    for name, value in headers.items():
        if not isinstance(value, str):
            raise InvalidHeaderValue(name)
        lower_name = name.lower()
        if lower_name in lower_headers:
            lower_headers[lower_name] += "," + trim_header_value(value)
        else:
            lower_headers[lower_name] = trim_header_value(value)
    return lower_headers


def signable_header_names(headers: dict[str, str]) -> list[str]:
    """Sorted lower-case names of every header a v4 signature covers."""
    return sorted({name.lower() for name in headers} - UNSIGNABLE_HEADERS)


def build_canonical_headers(headers: dict[str, str], signed_headers: list[str]) -> str:
    """One ``name:value\\n`` line per signed header, in sorted order."""
    lower_headers = normalize_headers(headers)
    return "".join(f"{name}:{lower_headers.get(name, '')}\n" for name in sorted(signed_headers))


def _require_bucket(request: Request) -> str:
    if not request.bucket:
        raise MissingBucket()
    return request.bucket


# ---------------------------------------------------------------------------
# Canonical forms
# ---------------------------------------------------------------------------


def canonicalize_v4(request: Request, context: SigningContext) -> CanonicalForm:
    """Build the v4 canonical request.

    Seven newline-separated fields: method, canonical URI, canonical query,
    canonical headers, a blank separator, signed header names, payload hash.
    A request carrying the ``expires`` marker is being presigned: with an
    empty body its payload is not hashed.
    """
    _require_bucket(request)

    canonical_uri = uri_encode_path(request.path)
    params = request_query_params(request) + request.extra_query
    canonical_query = build_canonical_query_string(params)

    signed_headers = signable_header_names(request.headers)
    canonical_headers = build_canonical_headers(request.headers, signed_headers)
    signed_headers_str = ";".join(signed_headers)

    body = request.body
    if request.expires is not None and not body:
        payload_hash = UNSIGNED_PAYLOAD
    else:
        payload_hash = request.get_header("x-amz-content-sha256") or hash_payload(body)

    canonical_request = "\n".join(
        [
            request.method.value,
            canonical_uri,
            canonical_query,
            canonical_headers,
            signed_headers_str,
            payload_hash,
        ]
    )
    logger.debug("Canonical request:\n%s", canonical_request)

    return CanonicalForm(
        variant=SignatureVersion.V4,
        canonical_string=canonical_request,
        signed_headers=tuple(signed_headers),
        payload_hash=payload_hash,
        canonical_uri=canonical_uri,
        canonical_query=canonical_query,
    )


def legacy_canonical_resource(request: Request) -> str:
    """``/bucket/key`` plus recognised sub-resources, sorted by name."""
    bucket = _require_bucket(request)
    resource = f"/{bucket}{uri_encode_path('/' + request.key)}"
    subresources = sorted(
        (name, value)
        for name, value in request_query_params(request)
        if name in LEGACY_SUBRESOURCES
    )
    if subresources:
        resource += "?" + "&".join(f"{name}={value}" if value else name for name, value in subresources)
    return resource


def canonicalize_legacy(request: Request, context: SigningContext) -> CanonicalForm:
    """Build the legacy string-to-sign.

    Method, Content-MD5, Content-Type, date, the sorted ``x-amz-*`` header
    lines and the canonical resource, joined by newlines. The date line is
    the ``Date`` header if present, else the context's RFC 1123 date.
    """
    resource = legacy_canonical_resource(request)
    lower_headers = normalize_headers(request.headers)

    lines = [
        request.method.value,
        lower_headers.get("content-md5", ""),
        lower_headers.get("content-type", ""),
        lower_headers.get("date", context.http_date),
    ]
    provider_headers = sorted(
        name for name in lower_headers if name.startswith(PROVIDER_HEADER_PREFIX)
    )
    lines.extend(f"{name}:{lower_headers[name]}" for name in provider_headers)
    lines.append(resource)

    canonical_string = "\n".join(lines)
    logger.debug("Legacy string to sign:\n%s", canonical_string)

    return CanonicalForm(
        variant=SignatureVersion.V2,
        canonical_string=canonical_string,
        signed_headers=tuple(provider_headers),
        canonical_uri=uri_encode_path(request.path),
        canonical_query=build_canonical_query_string(request_query_params(request)),
    )
