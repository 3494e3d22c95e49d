"""Bucket and object operations on top of the signing engine.

Each operation builds a ``Request``, signs it, sends it through the
transport and raises the classified ``ProtocolError`` on a non-2xx
response. Response bodies are returned as the ``Content`` variant the
caller asks for; nothing is sniffed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from s3signer import auth, metrics
from s3signer.classifier import classify_error, is_success
from s3signer.config import S3SignerConfig
from s3signer.models import (
    BytesContent,
    Content,
    Credentials,
    HttpResponse,
    JsonContent,
    Method,
    Request,
    SigningContext,
)
from s3signer.transport import HttpxTransport, Transport
from s3signer.validation import validate_bucket_name, validate_object_key
from s3signer.xml_utils import render_create_bucket_configuration

logger = logging.getLogger(__name__)


class S3Client:
    """A minimal S3 client.

    Attributes:
        credentials: Key pair used for every request.
        context: Region and signature version.
        endpoint: Service host, without bucket.
        scheme: "https" or "http".
        addressing_style: "virtual" or "path".
    """

    def __init__(
        self,
        credentials: Credentials,
        context: SigningContext | None = None,
        endpoint: str = "s3.amazonaws.com",
        scheme: str = "https",
        addressing_style: str = "virtual",
        transport: Transport | None = None,
        default_expires: int = auth.DEFAULT_EXPIRES,
    ) -> None:
        self.credentials = credentials
        self.context = context or SigningContext()
        self.endpoint = endpoint
        self.scheme = scheme
        self.addressing_style = addressing_style
        self.default_expires = default_expires
        self.transport: Transport = transport or HttpxTransport()

    @classmethod
    def from_config(cls, config: S3SignerConfig, transport: Transport | None = None) -> S3Client:
        return cls(
            credentials=config.to_credentials(),
            context=config.signing_context(),
            endpoint=config.client.endpoint,
            scheme=config.client.scheme,
            addressing_style=config.client.addressing_style,
            transport=transport,
            default_expires=config.presign.default_expires,
        )

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> S3Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Request plumbing ------------------------------------------------------

    def request(self, method: str | Method, bucket: str, key: str = "") -> Request:
        """Start a request addressed the way this client is configured."""
        return Request(
            method,
            bucket,
            key,
            endpoint=self.endpoint,
            scheme=self.scheme,
            addressing_style=self.addressing_style,
        )

    def execute(self, operation: str, request: Request) -> HttpResponse:
        """Sign and send ``request``.

        Raises:
            ProtocolError: If the response status is above 299.
        """
        signed = auth.sign(request, self.credentials, self.context)
        response = self.transport.send(
            signed.method.value, signed.url, signed.headers, signed.body
        )
        metrics.record_request(operation, response.status_code)
        if is_success(response.status_code):
            logger.debug(
                "%s %s -> %d",
                operation,
                signed.url,
                response.status_code,
                extra={
                    "operation": operation,
                    "method": signed.method.value,
                    "url": signed.url,
                    "status": response.status_code,
                },
            )
            return response

        error = classify_error(response, signed)
        logger.info(
            "%s failed: HTTP %d %s",
            operation,
            response.status_code,
            error.code,
            extra={
                "operation": operation,
                "method": signed.method.value,
                "url": signed.url,
                "status": response.status_code,
            },
        )
        raise error

    # -- Buckets ---------------------------------------------------------------

    def create_bucket(self, bucket: str) -> None:
        validate_bucket_name(bucket)
        request = self.request(Method.PUT, bucket)
        configuration = render_create_bucket_configuration(self.context.region)
        if configuration:
            request.set_content(BytesContent(configuration.encode("utf-8"), "application/xml"))
        self.execute("CreateBucket", request)

    def delete_bucket(self, bucket: str) -> None:
        self.execute("DeleteBucket", self.request(Method.DELETE, bucket))

    # -- Objects ---------------------------------------------------------------

    def put_object(
        self,
        bucket: str,
        key: str,
        content: Content,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Upload ``content`` and return the ETag the service reports."""
        validate_object_key(key)
        request = self.request(Method.PUT, bucket, key).set_content(content)
        for name, value in (metadata or {}).items():
            request.set_header(f"x-amz-meta-{name}", value)
        response = self.execute("PutObject", request)
        return _header(response, "etag")

    def get_object(self, bucket: str, key: str, as_json: bool = False) -> Content:
        """Download an object.

        Args:
            as_json: Decode the body as JSON and return ``JsonContent``;
                otherwise return ``BytesContent``.
        """
        validate_object_key(key)
        response = self.execute("GetObject", self.request(Method.GET, bucket, key))
        if as_json:
            return JsonContent(json.loads(response.body))
        content_type = _header(response, "content-type") or "application/octet-stream"
        return BytesContent(response.body, content_type)

    def head_object(self, bucket: str, key: str) -> dict[str, str]:
        """Return the object's response headers, lower-cased."""
        validate_object_key(key)
        response = self.execute("HeadObject", self.request(Method.HEAD, bucket, key))
        return {name.lower(): value for name, value in response.headers.items()}

    def delete_object(self, bucket: str, key: str) -> None:
        validate_object_key(key)
        self.execute("DeleteObject", self.request(Method.DELETE, bucket, key))

    def presign_url(
        self,
        method: str | Method,
        bucket: str,
        key: str,
        expires: int | None = None,
        timestamp: datetime | None = None,
    ) -> str:
        """Return a presigned URL for ``method`` on ``bucket/key``."""
        request = self.request(method, bucket, key)
        if timestamp is not None:
            request.at(timestamp)
        return auth.presign(
            request,
            self.credentials,
            self.context,
            expires if expires is not None else self.default_expires,
        )


def _header(response: HttpResponse, name: str) -> str:
    for key, value in response.headers.items():
        if key.lower() == name:
            return value
    return ""
