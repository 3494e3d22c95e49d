"""Precondition checks for s3signer.

Each function raises a ``PreconditionError`` subclass on invalid input, so
bad calls fail locally before anything is signed or sent.
"""

import re

from s3signer.errors import InvalidBucketName, InvalidExpires, KeyTooLongError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# S3 bucket naming rules:
#   - 3-63 characters
#   - lowercase letters, digits, hyphens, and periods
#   - must start and end with a letter or digit
#   - must not be formatted as an IP address
#   - no consecutive periods ("..") allowed

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$")
_IP_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")

_MAX_KEY_BYTES = 1024

MIN_PRESIGNED_EXPIRES = 1
MAX_PRESIGNED_EXPIRES = 604800  # 7 days in seconds


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_bucket_name(name: str) -> None:
    """Validate a bucket name against S3 naming rules.

    Raises:
        InvalidBucketName: If the name violates any naming rule.
    """
    if not name or len(name) < 3 or len(name) > 63:
        raise InvalidBucketName(name)

    if not _BUCKET_RE.match(name):
        raise InvalidBucketName(name)

    if _IP_RE.match(name):
        raise InvalidBucketName(name)

    if ".." in name:
        raise InvalidBucketName(name)


def validate_object_key(key: str) -> None:
    """Validate an object key.

    Raises:
        KeyTooLongError: If the key exceeds 1024 bytes when UTF-8 encoded.
    """
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise KeyTooLongError()


def validate_expires(value: int) -> int:
    """Validate a presigned URL lifetime in seconds.

    Returns:
        The value, as an int in [1, 604800].

    Raises:
        InvalidExpires: If the value is not an integer or is out of range.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidExpires(f"Expires must be an integer, got {value!r}.")

    if value < MIN_PRESIGNED_EXPIRES or value > MAX_PRESIGNED_EXPIRES:
        raise InvalidExpires(
            f"Expires must be between {MIN_PRESIGNED_EXPIRES} and {MAX_PRESIGNED_EXPIRES} seconds."
        )

    return value
