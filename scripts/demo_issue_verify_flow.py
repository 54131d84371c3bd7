"""Demo: issue → re-issue → verify → verify-missing, in one process.

Run with:
    python scripts/demo_issue_verify_flow.py

Both apps are built around the SAME in-memory store, standing in for
the shared database the two services use in a deployment.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from credential_service.core.config import load_settings
from credential_service.main import ServiceName, create_app
from credential_service.repos.credential_store import InMemoryCredentialStore
from credential_service.services.worker_identity import WorkerIdentity

CREDENTIAL = {"id": "cred-demo-1", "holder": "alice", "metadata": {"course": "k8s-101"}}


def main() -> None:
    settings = load_settings()
    store = InMemoryCredentialStore()
    issuance = create_app(
        ServiceName.ISSUANCE,
        settings=settings,
        store=store,
        worker_identity=WorkerIdentity("issuer-demo"),
    )
    verification = create_app(
        ServiceName.VERIFICATION,
        settings=settings,
        store=store,
        worker_identity=WorkerIdentity("verifier-demo"),
    )

    with TestClient(issuance) as issuer, TestClient(verification) as verifier:
        # ── Step 1: first issuance ──────────────────────────────────────
        r = issuer.post("/issue", json=CREDENTIAL)
        print(f"1. POST /issue              → {r.status_code}  {r.json()}")
        issued_at = r.json()["issuedAt"]

        # ── Step 2: re-issue the same id (idempotent) ──────────────────
        r = issuer.post("/issue", json=CREDENTIAL)
        print(f"2. POST /issue (again)      → {r.status_code}  {r.json()}")

        # ── Step 3: missing id ──────────────────────────────────────────
        r = issuer.post("/issue", json={"holder": "bob"})
        print(f"3. POST /issue (no id)      → {r.status_code}  {r.json()}")

        # ── Step 4: verify the issued credential ────────────────────────
        r = verifier.post("/verify", json={"id": CREDENTIAL["id"]})
        print(f"4. POST /verify             → {r.status_code}  {r.json()}")
        assert r.json()["issuedAt"] == issued_at, "issuedAt changed between calls!"

        # ── Step 5: verify an unknown id ────────────────────────────────
        r = verifier.post("/verify", json={"id": "cred-missing"})
        print(f"5. POST /verify (missing)   → {r.status_code}  {r.json()}")

    print(f"\nRecords in store: {len(store)}")


if __name__ == "__main__":
    main()
