"""Turn failed HTTP exchanges into ``ProtocolError`` values.

The classifier never retries and never interprets specific codes; that is
left to the caller. It only promises that the HTTP status and the raw
exchange survive, even when the body cannot be parsed.
"""

import logging
import xml.etree.ElementTree as ET

from s3signer import metrics
from s3signer.errors import PreconditionError, ProtocolError
from s3signer.models import Exchange, HttpResponse, SignedRequest
from s3signer.xml_utils import parse_error_document

logger = logging.getLogger(__name__)

UNPARSEABLE_CODE = "UnparseableResponse"

# Bodies are truncated to this many bytes in formatted diagnostics.
_MAX_LOGGED_BODY = 2048


def is_success(status_code: int) -> bool:
    return status_code <= 299


def classify_error(response: HttpResponse, request: SignedRequest | None = None) -> ProtocolError:
    """Build a ``ProtocolError`` from a non-2xx response.

    Args:
        response: The failed response.
        request: The signed request that produced it, kept for diagnostics.

    Returns:
        The structured error. It is returned, not raised, so callers decide.

    Raises:
        PreconditionError: If the response status indicates success.
    """
    if is_success(response.status_code):
        raise PreconditionError(
            f"Status {response.status_code} is not an error response.",
            code="NotAnError",
        )

    exchange = Exchange(request=request, response=response)
    try:
        fields = parse_error_document(response.body)
    except ET.ParseError:
        logger.debug("Unparseable error body for HTTP %d", response.status_code)
        fields = {}

    if "code" not in fields and "message" not in fields:
        error = ProtocolError(
            code=UNPARSEABLE_CODE,
            message=f"HTTP {response.status_code}: unparseable error body",
            http_status=response.status_code,
            fields=fields,
            exchange=exchange,
        )
    else:
        error = ProtocolError(
            code=fields.get("code", ""),
            message=fields.get("message", ""),
            http_status=response.status_code,
            fields=fields,
            exchange=exchange,
        )

    metrics.record_protocol_error(error.code)
    return error


def format_exchange(exchange: Exchange) -> str:
    """Render a request/response pair as readable text."""
    lines = []
    request = exchange.request
    if request is not None:
        lines.append(f"> {request.method.value} {request.url}")
        for name, value in request.headers.items():
            if name.lower() == "authorization":
                value = value.split(" ", 1)[0] + " ***"
            lines.append(f"> {name}: {value}")
    response = exchange.response
    lines.append(f"< HTTP {response.status_code}")
    for name, value in response.headers.items():
        lines.append(f"< {name}: {value}")
    body = response.body[:_MAX_LOGGED_BODY].decode("utf-8", errors="replace")
    if body:
        lines.append("<")
        lines.append(body)
    return "\n".join(lines)


def format_error(error: ProtocolError) -> str:
    """Describe a ``ProtocolError`` for logs or terminal output."""
    text = f"{error.kind} {error.http_status} {error.code}: {error.message}"
    extras = {k: v for k, v in error.fields.items() if k not in ("code", "message")}
    if extras:
        text += "\n" + "\n".join(f"  {k}: {v}" for k, v in sorted(extras.items()))
    if error.exchange is not None:
        text += "\n" + format_exchange(error.exchange)
    return text
