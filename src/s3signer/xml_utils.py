"""S3 XML helpers for s3signer."""

import xml.etree.ElementTree as ET
from xml.sax.saxutils import escape as _sax_escape

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"


def _escape_xml(value: str) -> str:
    return _sax_escape(str(value))


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def field_name(tag: str) -> str:
    """Map an element name to a field name: ``Code`` -> ``code``."""
    name = _local_name(tag)
    return name[:1].lower() + name[1:]


def parse_error_document(body: bytes | str) -> dict[str, str]:
    """Parse a flat S3 error document into a field dict.

    Each child of the root element becomes one entry keyed by
    :func:`field_name`. When two children map to the same field the later
    one wins.

    Args:
        body: The raw response body.

    Returns:
        A dict such as ``{"code": "NoSuchKey", "message": "...", "requestId": "..."}``.

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not well-formed XML.
    """
    root = ET.fromstring(body)
    fields: dict[str, str] = {}
    for child in root:
        if not isinstance(child.tag, str):
            continue
        name = field_name(child.tag)
        if name:
            fields[name] = (child.text or "").strip()
    return fields


def render_create_bucket_configuration(region: str) -> str:
    """Render the CreateBucketConfiguration body for a regional bucket.

    Returns an empty string for us-east-1, which takes no body.
    """
    if not region or region == "us-east-1":
        return ""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<CreateBucketConfiguration xmlns="{S3_NAMESPACE}">',
        f"<LocationConstraint>{_escape_xml(region)}</LocationConstraint>",
        "</CreateBucketConfiguration>",
    ]
    return "\n".join(parts)
