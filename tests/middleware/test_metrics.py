"""Tests for Prometheus metrics.

Prometheus counters live in a global registry and cannot be reset, so
every assertion compares a value read before the action with one read
after it.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from credential_service.main import ServiceName
from tests.conftest import FailingCredentialStore, LosingRaceStore, make_client


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def _issuance(outcome: str) -> float:
    return _get_sample("credential_issuance_total", {"outcome": outcome})


def _verification(result: str) -> float:
    return _get_sample("credential_verification_total", {"result": result})


def test_request_counter_increments(issuance_client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    issuance_client.get("/health")
    after = _get_sample("http_requests_total", labels)
    assert after - before >= 1


def test_request_duration_histogram_observes(issuance_client: TestClient) -> None:
    labels = {"method": "POST", "endpoint": "/issue"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    issuance_client.post("/issue", json={"id": "cred-hist"})
    after = _get_sample("http_request_duration_seconds_count", labels)
    assert after - before >= 1


def test_issuance_outcomes_are_counted(issuance_client: TestClient) -> None:
    issued, already = _issuance("issued"), _issuance("already_issued")
    issuance_client.post("/issue", json={"id": "cred-metric"})
    issuance_client.post("/issue", json={"id": "cred-metric"})
    assert _issuance("issued") - issued == 1
    assert _issuance("already_issued") - already == 1


def test_race_and_error_outcomes_are_counted() -> None:
    race, error = _issuance("race"), _issuance("error")
    with make_client(ServiceName.ISSUANCE, LosingRaceStore()) as client:
        client.post("/issue", json={"id": "cred-race"})
    with make_client(
        ServiceName.ISSUANCE, FailingCredentialStore(insert_error="boom")
    ) as client:
        client.post("/issue", json={"id": "cred-err"})
    assert _issuance("race") - race == 1
    assert _issuance("error") - error == 1


def test_verification_results_are_counted(verification_client: TestClient) -> None:
    not_found = _verification("not_found")
    verification_client.post("/verify", json={"id": "nope"})
    assert _verification("not_found") - not_found == 1


def test_metrics_endpoint_returns_prometheus_format(
    verification_client: TestClient,
) -> None:
    verification_client.get("/health")
    resp = verification_client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "credential_verification_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(
    verification_client: TestClient,
) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    verification_client.get("/metrics")
    verification_client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before
