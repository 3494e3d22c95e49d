"""Request signing for s3signer.

Implements the two signing variants behind one interface:

* ``LegacySigner`` -- the HMAC-SHA1 scheme (``Authorization: AWS key:sig``).
* ``SigV4Signer`` -- the derived-key HMAC-SHA256 scheme, for both header
  auth and presigned URLs.

The variant is chosen by ``SigningContext.variant``; nothing is inferred from
the request. Every entry point signs a snapshot of the caller's ``Request``,
so the builder itself is never modified and may be signed or presigned
again. The clock is read at most once per call.

References:
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sig-v4-authenticating-requests.html
    - https://docs.aws.amazon.com/AmazonS3/latest/API/sigv4-query-string-auth.html
"""

import logging
from datetime import datetime, timezone

from s3signer import metrics
from s3signer.canonical import (
    canonicalize_legacy,
    canonicalize_v4,
    content_md5,
    encode_header_value,
    hash_payload,
    signable_header_names,
)
from s3signer.errors import InvalidHeaderValue, MissingBucket, UnsupportedOperation
from s3signer.keys import derive_signing_key, legacy_signing_key
from s3signer.models import (
    CanonicalForm,
    Credentials,
    Request,
    SignatureVersion,
    SignedRequest,
    SigningContext,
)
from s3signer.signature import (
    ALGORITHM,
    build_string_to_sign,
    compute_legacy_signature,
    compute_signature,
)
from s3signer.validation import validate_expires

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES = 3600


class RequestSigner:
    """Interface shared by the signing variants."""

    variant: SignatureVersion

    def canonicalize(self, request: Request, context: SigningContext) -> CanonicalForm:
        raise NotImplementedError

    def sign(
        self, request: Request, credentials: Credentials, context: SigningContext
    ) -> SignedRequest:
        raise NotImplementedError

    def presign(
        self,
        request: Request,
        credentials: Credentials,
        context: SigningContext,
        expires_seconds: int = DEFAULT_EXPIRES,
    ) -> str:
        raise UnsupportedOperation(
            f"Presigned URLs are not supported by signature version {self.variant.value}."
        )


class LegacySigner(RequestSigner):
    """HMAC-SHA1 signing with the secret key used directly."""

    variant = SignatureVersion.V2

    def canonicalize(self, request: Request, context: SigningContext) -> CanonicalForm:
        return canonicalize_legacy(request, context)

    def _prepare_headers(
        self, request: Request, credentials: Credentials, context: SigningContext
    ) -> None:
        request.set_header("Date", context.http_date)
        body = request.body
        if body and request.get_header("content-md5") is None:
            request.set_header("Content-MD5", content_md5(body))
        content_type = request.content_type()
        if content_type:
            request.set_header("Content-Type", content_type)
        if credentials.session_token:
            request.set_header("x-amz-security-token", credentials.session_token)

    def sign(
        self, request: Request, credentials: Credentials, context: SigningContext
    ) -> SignedRequest:
        snapshot = _snapshot(request)
        self._prepare_headers(snapshot, credentials, context)

        canonical = self.canonicalize(snapshot, context)
        signing_key = legacy_signing_key(credentials.secret_access_key)
        signature = compute_legacy_signature(signing_key, canonical.canonical_string)

        snapshot.set_header("Authorization", f"AWS {credentials.access_key_id}:{signature}")
        return _signed_request(snapshot, canonical, signature)


class SigV4Signer(RequestSigner):
    """HMAC-SHA256 signing with a key derived per date, region and service."""

    variant = SignatureVersion.V4

    def canonicalize(self, request: Request, context: SigningContext) -> CanonicalForm:
        return canonicalize_v4(request, context)

    def _prepare_headers(
        self, request: Request, credentials: Credentials, context: SigningContext
    ) -> None:
        request.set_header("Host", request.host)
        request.set_header("X-Amz-Date", context.amz_date)
        request.set_header("X-Amz-Content-Sha256", hash_payload(request.body))
        content_type = request.content_type()
        if content_type:
            request.set_header("Content-Type", content_type)
        if credentials.session_token:
            request.set_header("X-Amz-Security-Token", credentials.session_token)

    def _signature(
        self, canonical: CanonicalForm, credentials: Credentials, context: SigningContext
    ) -> str:
        string_to_sign = build_string_to_sign(
            context.amz_date, context.scope, canonical.canonical_string
        )
        logger.debug("String to sign:\n%s", string_to_sign)
        signing_key = derive_signing_key(
            credentials.secret_access_key, context.date, context.region, context.service
        )
        return compute_signature(signing_key, string_to_sign)

    def sign(
        self, request: Request, credentials: Credentials, context: SigningContext
    ) -> SignedRequest:
        snapshot = _snapshot(request)
        self._prepare_headers(snapshot, credentials, context)

        canonical = self.canonicalize(snapshot, context)
        signature = self._signature(canonical, credentials, context)

        credential = f"{credentials.access_key_id}/{context.scope}"
        snapshot.set_header(
            "Authorization",
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={';'.join(canonical.signed_headers)}, "
            f"Signature={signature}",
        )
        return _signed_request(snapshot, canonical, signature)

    def presign(
        self,
        request: Request,
        credentials: Credentials,
        context: SigningContext,
        expires_seconds: int = DEFAULT_EXPIRES,
    ) -> str:
        expires = validate_expires(expires_seconds)
        snapshot = _snapshot(request)
        snapshot.set_header("Host", snapshot.host)
        snapshot.expires = expires

        # Query auth parameters, in the order they appear on the URL.
        extra_query = [
            ("X-Amz-Algorithm", ALGORITHM),
            ("X-Amz-Credential", f"{credentials.access_key_id}/{context.scope}"),
            ("X-Amz-Date", context.amz_date),
            ("X-Amz-Expires", str(expires)),
            ("X-Amz-SignedHeaders", ";".join(signable_header_names(snapshot.headers))),
        ]
        if credentials.session_token:
            extra_query.append(("X-Amz-Security-Token", credentials.session_token))
        snapshot.extra_query = extra_query

        canonical = self.canonicalize(snapshot, context)
        signature = self._signature(canonical, credentials, context)

        url = (
            f"{snapshot.scheme}://{snapshot.host}{canonical.canonical_uri}"
            f"?{canonical.canonical_query}&X-Amz-Signature={signature}"
        )
        metrics.record_signature(self.variant.value, "presign")
        logger.debug(
            "Presigned %s %s for %ds",
            snapshot.method.value,
            snapshot.path,
            expires,
            extra={
                "method": snapshot.method.value,
                "url": f"{snapshot.scheme}://{snapshot.host}{canonical.canonical_uri}",
                "variant": self.variant.value,
            },
        )
        return url


_SIGNERS: dict[SignatureVersion, RequestSigner] = {
    SignatureVersion.V2: LegacySigner(),
    SignatureVersion.V4: SigV4Signer(),
}


def get_signer(variant: SignatureVersion | str) -> RequestSigner:
    """Return the strategy for ``variant`` ("v2" or "v4")."""
    return _SIGNERS[SignatureVersion(variant)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _snapshot(request: Request) -> Request:
    """Copy the request with every header value made transport-safe."""
    if not request.bucket:
        raise MissingBucket()
    snapshot = request.copy()
    snapshot.headers = {}
    for name, value in request.headers.items():
        if not isinstance(name, str):
            raise InvalidHeaderValue(repr(name))
        snapshot.headers[name] = encode_header_value(value)
    snapshot.remove_header("authorization")
    return snapshot


def _signed_request(snapshot: Request, canonical: CanonicalForm, signature: str) -> SignedRequest:
    url = f"{snapshot.scheme}://{snapshot.host}{canonical.canonical_uri}"
    if canonical.canonical_query:
        url += "?" + canonical.canonical_query
    metrics.record_signature(canonical.variant.value, "header")
    logger.debug(
        "Signed %s %s (%s)",
        snapshot.method.value,
        url,
        canonical.variant.value,
        extra={"method": snapshot.method.value, "url": url, "variant": canonical.variant.value},
    )
    return SignedRequest(
        method=snapshot.method,
        url=url,
        headers=snapshot.headers,
        body=snapshot.body,
        signature=signature,
        canonical=canonical,
    )


def _bind_timestamp(request: Request, context: SigningContext | None) -> SigningContext:
    """Capture the signing instant once: request, then context, then clock."""
    context = context or SigningContext()
    timestamp = request.timestamp or context.timestamp or datetime.now(timezone.utc)
    return context.at(timestamp)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def canonicalize(request: Request, context: SigningContext | None = None) -> CanonicalForm:
    """Canonicalize ``request`` as-is under the context's variant.

    No headers are added; use :func:`sign` to canonicalize exactly what is
    sent.
    """
    context = _bind_timestamp(request, context)
    return get_signer(context.variant).canonicalize(_snapshot(request), context)


def sign(
    request: Request, credentials: Credentials, context: SigningContext | None = None
) -> SignedRequest:
    """Sign ``request`` for immediate execution with an Authorization header.

    Raises:
        MissingBucket: If the request has no bucket.
        InvalidHeaderValue: If a header value is not a string.
        MissingSecretKey: If the credentials carry no secret.
    """
    context = _bind_timestamp(request, context)
    return get_signer(context.variant).sign(request, credentials, context)


def presign(
    request: Request,
    credentials: Credentials,
    context: SigningContext | None = None,
    expires_seconds: int = DEFAULT_EXPIRES,
) -> str:
    """Build a query-authenticated URL valid for ``expires_seconds``.

    Raises:
        InvalidExpires: If ``expires_seconds`` is outside [1, 604800].
        UnsupportedOperation: If the context selects the legacy variant.
    """
    context = _bind_timestamp(request, context)
    return get_signer(context.variant).presign(request, credentials, context, expires_seconds)
