"""Signing key derivation.

The legacy variant signs with the secret access key directly. The v4
variant derives a per-day, per-region, per-service key through a chain of
four HMAC-SHA256 steps; each step keys the next with its raw digest.
"""

import hashlib
import hmac
import re

from s3signer.errors import InvalidSigningDate, MissingSecretKey
from s3signer.models import SCOPE_TERMINATOR, SERVICE_NAME

KEY_PREFIX = "AWS4"

_DATE_RE = re.compile(r"^[0-9]{8}$")


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def legacy_signing_key(secret_key: str) -> bytes:
    """Return the legacy HMAC key: the secret itself.

    Raises:
        MissingSecretKey: If ``secret_key`` is empty.
    """
    if not secret_key:
        raise MissingSecretKey()
    return secret_key.encode("utf-8")


def derive_signing_key(secret_key: str, date: str, region: str, service: str = SERVICE_NAME) -> bytes:
    """Derive the v4 signing key via the HMAC-SHA256 chain.

    Args:
        secret_key: The secret access key.
        date: Date string (YYYYMMDD).
        region: Region name, e.g. "us-east-1".
        service: Service name.

    Returns:
        The 32-byte signing key.

    Raises:
        MissingSecretKey: If ``secret_key`` is empty.
        InvalidSigningDate: If ``date`` is not eight digits.
    """
    if not secret_key:
        raise MissingSecretKey()
    if not _DATE_RE.match(date or ""):
        raise InvalidSigningDate(date)

    k_date = _hmac_sha256((KEY_PREFIX + secret_key).encode("utf-8"), date)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, SCOPE_TERMINATOR)
