"""Error definitions for s3signer.

Three classes of failure reach the caller:

* ``PreconditionError`` -- malformed input to the engine, detected locally
  before any network interaction.
* ``ProtocolError`` -- the remote service rejected a request; built by the
  error classifier from the failed exchange.
* Parse failures of the error body never surface on their own; the
  classifier degrades them into a ``ProtocolError`` that still carries the
  HTTP status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3signer.models import Exchange


class S3SignerError(Exception):
    """Base error with a machine-readable code and a message.

    Attributes:
        code: Short error code string (e.g. "MissingBucket", "NoSuchKey").
        message: Human-readable error description.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


# -- Precondition errors ------------------------------------------------------


class PreconditionError(S3SignerError, ValueError):
    """The caller handed the engine an input it cannot sign."""

    def __init__(self, message: str = "Invalid signing input", code: str = "PreconditionFailed") -> None:
        super().__init__(code=code, message=message)


class MissingBucket(PreconditionError):
    """A request was signed before its bucket was set."""

    def __init__(self, message: str = "A bucket must be set before the request is signed.") -> None:
        super().__init__(message=message, code="MissingBucket")


class InvalidMethod(PreconditionError):
    """The HTTP method is not one of the supported verbs."""

    def __init__(self, method: str = "") -> None:
        super().__init__(
            message=f"Unsupported HTTP method: {method!r}.",
            code="InvalidMethod",
        )


class InvalidHeaderValue(PreconditionError):
    """A header name or value is not a string."""

    def __init__(self, name: str = "") -> None:
        super().__init__(
            message=f"Header {name!r} must have a string value.",
            code="InvalidHeaderValue",
        )


class InvalidExpires(PreconditionError):
    """The presigned URL lifetime is outside the accepted range."""

    def __init__(self, message: str = "Expires must be between 1 and 604800 seconds.") -> None:
        super().__init__(message=message, code="InvalidExpires")


class MissingSecretKey(PreconditionError):
    """No secret access key was supplied for key derivation."""

    def __init__(self, message: str = "A secret access key is required to sign requests.") -> None:
        super().__init__(message=message, code="MissingSecretKey")


class InvalidSigningDate(PreconditionError):
    """The credential-scope date is not an 8-digit YYYYMMDD string."""

    def __init__(self, date: str = "") -> None:
        super().__init__(
            message=f"Signing date must be in YYYYMMDD form, got {date!r}.",
            code="InvalidSigningDate",
        )


class InvalidBucketName(PreconditionError):
    """The bucket name violates S3 naming rules."""

    def __init__(self, bucket: str = "") -> None:
        super().__init__(
            message=f"The specified bucket is not valid: {bucket!r}.",
            code="InvalidBucketName",
        )


class KeyTooLongError(PreconditionError):
    """The object key exceeds 1024 bytes."""

    def __init__(self, message: str = "Your key is too long.") -> None:
        super().__init__(message=message, code="KeyTooLongError")


class UnsupportedOperation(PreconditionError):
    """The selected signature version does not support the operation."""

    def __init__(self, message: str = "Operation not supported by this signature version.") -> None:
        super().__init__(message=message, code="UnsupportedOperation")


# -- Protocol errors ----------------------------------------------------------


class ProtocolError(S3SignerError):
    """A failed HTTP exchange, as reported by the remote service.

    Attributes:
        kind: Always "ProtocolError".
        code: The service error code (e.g. "NoSuchBucket").
        message: The service error message.
        http_status: The HTTP status code of the response.
        fields: Every field parsed from the error document.
        exchange: The raw request/response pair, for diagnostics.
    """

    kind = "ProtocolError"

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int,
        fields: dict[str, str] | None = None,
        exchange: Exchange | None = None,
    ) -> None:
        super().__init__(code=code, message=message)
        self.http_status = http_status
        self.fields = fields or {}
        self.exchange = exchange
