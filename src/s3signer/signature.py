"""Signature computation for both variants."""

import base64
import hashlib
import hmac

ALGORITHM = "AWS4-HMAC-SHA256"


def build_string_to_sign(timestamp: str, scope: str, canonical_request: str) -> str:
    """Build the v4 string to sign.

    Args:
        timestamp: ISO 8601 basic timestamp (YYYYMMDDTHHMMSSZ).
        scope: Credential scope (YYYYMMDD/region/s3/aws4_request).
        canonical_request: The assembled canonical request string.

    Returns:
        The string to sign.
    """
    canonical_hash = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return f"{ALGORITHM}\n{timestamp}\n{scope}\n{canonical_hash}"


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the final HMAC-SHA256 hex signature.

    Returns:
        64-character lowercase hex string.
    """
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def compute_legacy_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the legacy HMAC-SHA1 signature, base64-encoded."""
    digest = hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")
