"""Client-side request signing for S3-compatible object storage."""

from s3signer.auth import canonicalize, get_signer, presign, sign
from s3signer.classifier import classify_error, format_error
from s3signer.errors import PreconditionError, ProtocolError, S3SignerError
from s3signer.models import (
    BytesContent,
    CanonicalForm,
    Content,
    Credentials,
    HttpResponse,
    JsonContent,
    Method,
    Request,
    SignatureVersion,
    SignedRequest,
    SigningContext,
)

__all__ = [
    "BytesContent",
    "canonicalize",
    "CanonicalForm",
    "classify_error",
    "Content",
    "Credentials",
    "format_error",
    "get_signer",
    "HttpResponse",
    "JsonContent",
    "Method",
    "PreconditionError",
    "presign",
    "ProtocolError",
    "Request",
    "S3SignerError",
    "sign",
    "SignatureVersion",
    "SignedRequest",
    "SigningContext",
]
