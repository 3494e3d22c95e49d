"""Prometheus metrics definitions for s3signer.

All metrics use the ``s3signer_`` prefix. They stay ``None`` until
:func:`init_metrics` is called, so a process that never enables metrics
registers nothing in the global ``prometheus_client`` registry.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Signatures produced  (labels: variant, mode)
# ---------------------------------------------------------------------------
signatures_total: Counter | None = None

# ---------------------------------------------------------------------------
# Protocol errors classified  (labels: code)
# ---------------------------------------------------------------------------
protocol_errors_total: Counter | None = None

# ---------------------------------------------------------------------------
# Client operations  (labels: operation, status)
# ---------------------------------------------------------------------------
requests_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics. Safe to call twice."""
    global _initialized
    global signatures_total, protocol_errors_total, requests_total

    if _initialized:
        return

    signatures_total = Counter(
        "s3signer_signatures_total",
        "Total signatures produced by variant and delivery mode",
        ["variant", "mode"],
    )

    protocol_errors_total = Counter(
        "s3signer_protocol_errors_total",
        "Total non-2xx responses classified, by error code",
        ["code"],
    )

    requests_total = Counter(
        "s3signer_requests_total",
        "Total client operations by type and HTTP status",
        ["operation", "status"],
    )

    _initialized = True


def record_signature(variant: str, mode: str) -> None:
    if signatures_total is not None:
        signatures_total.labels(variant=variant, mode=mode).inc()


def record_protocol_error(code: str) -> None:
    if protocol_errors_total is not None:
        protocol_errors_total.labels(code=code).inc()


def record_request(operation: str, status: int) -> None:
    if requests_total is not None:
        requests_total.labels(operation=operation, status=str(status)).inc()
