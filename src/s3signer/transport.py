"""HTTP transport used by the client.

The signing engine never performs I/O. ``S3Client`` hands each signed request
to a ``Transport``; ``HttpxTransport`` is the default, and tests substitute an
``httpx.MockTransport``.
"""

from __future__ import annotations

import logging
from typing import Mapping, Protocol

import httpx

from s3signer.models import HttpResponse

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can execute one HTTP request."""

    def send(
        self, method: str, url: str, headers: Mapping[str, str], body: bytes
    ) -> HttpResponse: ...

    def close(self) -> None: ...


class HttpxTransport:
    """Synchronous transport on top of ``httpx.Client``.

    No retries and no redirects: a redirect would change the host the
    request was signed for.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = 30.0) -> None:
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=False)

    def send(
        self, method: str, url: str, headers: Mapping[str, str], body: bytes
    ) -> HttpResponse:
        logger.debug(
            "%s %s (%d bytes)", method, url, len(body), extra={"method": method, "url": url}
        )
        response = self._client.request(method, url, headers=dict(headers), content=body)
        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    def close(self) -> None:
        self._client.close()
