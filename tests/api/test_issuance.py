"""Tests for POST /issue."""

from __future__ import annotations

import asyncio
import datetime

from fastapi.testclient import TestClient

from credential_service.main import ServiceName
from credential_service.repos.credential_store import InMemoryCredentialStore
from credential_service.services.worker_identity import WorkerIdentity
from tests.conftest import (
    ISSUER_WORKER_ID,
    FailingCredentialStore,
    LosingRaceStore,
    make_client,
)

VALID_CREDENTIAL = {
    "id": "test-credential-123",
    "holder": "test-user",
    "metadata": {"type": "test"},
}


def _parse_iso(value: str) -> datetime.datetime:
    assert value.endswith("Z")
    return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_issue_new_credential_returns_201(
    issuance_client: TestClient, store: InMemoryCredentialStore
) -> None:
    resp = issuance_client.post("/issue", json=VALID_CREDENTIAL)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "credential issued"
    assert body["workerId"] == ISSUER_WORKER_ID

    issued_at = _parse_iso(body["issuedAt"])
    now = datetime.datetime.now(datetime.UTC)
    assert abs((now - issued_at).total_seconds()) < 60

    stored = asyncio.run(store.find_by_id("test-credential-123"))
    assert stored is not None
    assert stored.holder == "test-user"
    assert stored.metadata == {"type": "test"}
    assert stored.issued_at == body["issuedAt"]


def test_reissue_returns_200_with_original_worker(
    issuance_client: TestClient,
) -> None:
    first = issuance_client.post("/issue", json={"id": "cred-1", "holder": "alice"})
    assert first.status_code == 201

    second = issuance_client.post("/issue", json={"id": "cred-1", "holder": "alice"})
    assert second.status_code == 200
    assert second.json() == {
        "message": "credential already issued",
        "workerId": first.json()["workerId"],
    }


def test_reissue_reports_first_worker_even_without_fixed_identity(
    store: InMemoryCredentialStore,
) -> None:
    """Without WORKER_ID, labels are random per call, but re-issue
    reports the label stored at first issuance."""
    with make_client(ServiceName.ISSUANCE, store, WorkerIdentity()) as client:
        first = client.post("/issue", json={"id": "cred-r"}).json()
        for _ in range(5):
            again = client.post("/issue", json={"id": "cred-r"})
            assert again.status_code == 200
            assert again.json()["workerId"] == first["workerId"]


def test_reissue_does_not_overwrite_stored_record(
    issuance_client: TestClient, store: InMemoryCredentialStore
) -> None:
    issuance_client.post("/issue", json={"id": "cred-2", "holder": "alice"})
    issuance_client.post("/issue", json={"id": "cred-2", "holder": "mallory"})

    stored = asyncio.run(store.find_by_id("cred-2"))
    assert stored is not None
    assert stored.holder == "alice"
    assert len(store) == 1


def test_issue_rejects_empty_body_object(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_rejects_missing_id(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue", json={"holder": "test-user"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_rejects_empty_id(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue", json={"id": ""})
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_rejects_null_id(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue", json={"id": None, "holder": "x"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_rejects_missing_body(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue")
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_rejects_non_object_body(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue", json=["cred-1"])
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_folds_unknown_fields_into_metadata(
    issuance_client: TestClient, store: InMemoryCredentialStore
) -> None:
    resp = issuance_client.post(
        "/issue",
        json={
            "id": "cred-extra",
            "subject": {"holder": "alice"},
            "metadata": {"level": 2},
        },
    )
    assert resp.status_code == 201

    stored = asyncio.run(store.find_by_id("cred-extra"))
    assert stored is not None
    assert stored.metadata == {"subject": {"holder": "alice"}, "level": 2}


def test_issue_accepts_non_string_holder(
    issuance_client: TestClient, store: InMemoryCredentialStore
) -> None:
    resp = issuance_client.post("/issue", json={"id": "holder-num", "holder": 5})
    assert resp.status_code == 201
    assert resp.json()["message"] == "credential issued"

    stored = asyncio.run(store.find_by_id("holder-num"))
    assert stored is not None
    assert stored.holder is None
    assert stored.metadata == {"holder": 5}


def test_issue_accepts_non_object_metadata(
    issuance_client: TestClient, store: InMemoryCredentialStore
) -> None:
    resp = issuance_client.post("/issue", json={"id": "meta-str", "metadata": "x"})
    assert resp.status_code == 201

    stored = asyncio.run(store.find_by_id("meta-str"))
    assert stored is not None
    assert stored.metadata == {"metadata": "x"}


def test_issue_with_odd_fields_still_requires_id(issuance_client: TestClient) -> None:
    resp = issuance_client.post("/issue", json={"holder": 5, "metadata": [1]})
    assert resp.status_code == 400
    assert resp.json() == {"error": "credential must contain id"}


def test_issue_reissue_after_odd_fields_is_200(issuance_client: TestClient) -> None:
    body = {"id": "odd-twice", "holder": ["a", "b"], "metadata": 3}
    assert issuance_client.post("/issue", json=body).status_code == 201
    second = issuance_client.post("/issue", json=body)
    assert second.status_code == 200
    assert second.json()["message"] == "credential already issued"


def test_issue_race_returns_200_with_unknown_worker() -> None:
    store = LosingRaceStore()
    with make_client(ServiceName.ISSUANCE, store) as client:
        resp = client.post("/issue", json=VALID_CREDENTIAL)

    assert resp.status_code == 200
    assert resp.json() == {
        "message": "credential already issued (race)",
        "workerId": "unknown",
    }
    assert store.insert_calls == 1


def test_issue_lookup_failure_returns_500_with_store_message() -> None:
    store = FailingCredentialStore(find_error="Database connection failed")
    with make_client(ServiceName.ISSUANCE, store) as client:
        resp = client.post("/issue", json=VALID_CREDENTIAL)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Database connection failed"}


def test_issue_insert_failure_returns_500_with_store_message() -> None:
    store = FailingCredentialStore(insert_error="Insert failed")
    with make_client(ServiceName.ISSUANCE, store) as client:
        resp = client.post("/issue", json=VALID_CREDENTIAL)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Insert failed"}
    assert len(store) == 0


def test_issue_uses_fixed_worker_identity(store: InMemoryCredentialStore) -> None:
    with make_client(
        ServiceName.ISSUANCE, store, WorkerIdentity("pinned-worker")
    ) as client:
        resp = client.post("/issue", json=VALID_CREDENTIAL)

    assert resp.status_code == 201
    assert resp.json()["workerId"] == "pinned-worker"


def test_issue_synthesizes_worker_label_when_unconfigured(
    store: InMemoryCredentialStore,
) -> None:
    with make_client(ServiceName.ISSUANCE, store, WorkerIdentity()) as client:
        resp = client.post("/issue", json=VALID_CREDENTIAL)

    worker_id = resp.json()["workerId"]
    assert worker_id.startswith("worker-")
    assert 0 <= int(worker_id.removeprefix("worker-")) < 1000


def test_verify_route_not_mounted_on_issuance_service(
    issuance_client: TestClient,
) -> None:
    resp = issuance_client.post("/verify", json={"id": "cred-1"})
    assert resp.status_code == 404
