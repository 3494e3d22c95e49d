"""Tests for Prometheus metrics recording."""

import pytest
from prometheus_client import REGISTRY, generate_latest

from s3signer import metrics
from s3signer.auth import presign, sign
from s3signer.classifier import classify_error
from s3signer.models import HttpResponse, Request


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture(autouse=True)
def _metrics():
    metrics.init_metrics()


class TestMetrics:
    """Counters registered by init_metrics()."""

    def test_init_is_idempotent(self):
        metrics.init_metrics()
        body = generate_latest().decode()
        assert "s3signer_signatures_total" in body
        assert "s3signer_protocol_errors_total" in body
        assert "s3signer_requests_total" in body

    def test_header_signature_counted(self, credentials, context):
        labels = {"variant": "v4", "mode": "header"}
        before = _sample("s3signer_signatures_total", labels)
        sign(Request("GET", "bucket", "k"), credentials, context)
        assert _sample("s3signer_signatures_total", labels) == before + 1

    def test_presign_counted(self, credentials, context):
        labels = {"variant": "v4", "mode": "presign"}
        before = _sample("s3signer_signatures_total", labels)
        presign(Request("GET", "bucket", "k"), credentials, context, 60)
        assert _sample("s3signer_signatures_total", labels) == before + 1

    def test_protocol_error_counted(self):
        labels = {"code": "SlowDown"}
        before = _sample("s3signer_protocol_errors_total", labels)
        classify_error(HttpResponse(status_code=503, body=b"<Error><Code>SlowDown</Code></Error>"))
        assert _sample("s3signer_protocol_errors_total", labels) == before + 1

    def test_request_counted(self):
        labels = {"operation": "GetObject", "status": "200"}
        before = _sample("s3signer_requests_total", labels)
        metrics.record_request("GetObject", 200)
        assert _sample("s3signer_requests_total", labels) == before + 1
