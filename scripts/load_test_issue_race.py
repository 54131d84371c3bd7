#!/usr/bin/env python3
"""Load test script: fires concurrent issuances of ONE credential id.

RUN:  python scripts/load_test_issue_race.py [CONCURRENCY]

Prerequisites:
  - The issuance service must be running:
      python -m credential_service.serve issuance
  - For a multi-replica test, point ISSUANCE_URL at a load balancer in
    front of several replicas sharing one DATABASE_URL or REDIS_URL.

Expected result: exactly one 201 ("credential issued"); every other
response is a 200, either "already issued" (lookup saw the record) or
"already issued (race)" (lost the insert).  Any 5xx is a bug or a store
outage.

This script is educational; it's not a production load testing tool.
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
import uuid
from collections import Counter

import httpx

BASE_URL = os.environ.get("ISSUANCE_URL", "http://localhost:4001").rstrip("/")
DEFAULT_CONCURRENCY = 50


async def _issue(client: httpx.AsyncClient, credential_id: str) -> tuple[int, str]:
    resp = await client.post("/issue", json={"id": credential_id, "holder": "load-test"})
    body = resp.json()
    return resp.status_code, body.get("message") or body.get("error", "")


async def run(concurrency: int) -> int:
    credential_id = f"race-{uuid.uuid4().hex[:8]}"
    print("Issuance Race Load Test")
    print("=" * 50)
    print(f"Target:      {BASE_URL}/issue")
    print(f"Credential:  {credential_id}")
    print(f"Concurrency: {concurrency}")
    print()

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10) as client:
        start = time.monotonic()
        results = await asyncio.gather(
            *(_issue(client, credential_id) for _ in range(concurrency))
        )
        elapsed = time.monotonic() - start

    outcomes = Counter(results)
    print(f"Results after {concurrency} requests ({elapsed:.2f}s):")
    print("─" * 50)
    for (status_code, message), count in sorted(outcomes.items()):
        print(f"  {status_code}  {message:<36} {count:>4}")
    print()

    created = sum(n for (code, _), n in outcomes.items() if code == 201)
    failed = sum(n for (code, _), n in outcomes.items() if code >= 500)
    if created == 1 and failed == 0:
        print("Exactly one issuance recorded; all callers succeeded.")
        return 0
    print(f"WARNING: {created} issuances recorded, {failed} failures.")
    return 1


def main() -> None:
    concurrency = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CONCURRENCY
    sys.exit(asyncio.run(run(concurrency)))


if __name__ == "__main__":
    main()
