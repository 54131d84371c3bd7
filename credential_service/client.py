"""HTTP client for the issuance and verification services.

RUN:  python -m credential_service.client issue cred-1 --holder alice
      python -m credential_service.client verify cred-1

RETRY POLICY
-------------
Transport errors (connection refused, timeouts), 5xx and 429 are retried
with exponential backoff:

    delay = API_RETRY_DELAY_MS * 2 ** (attempt - 1)      # 500ms, 1s, 2s…

up to API_RETRY_ATTEMPTS total attempts.  Any other 4xx is the caller's
fault and is returned immediately; retrying it cannot help.

Retrying POST /issue is safe because issuance is idempotent: a retry
after a lost response gets "credential already issued" (200), never a
second record.

Results are normalised into ApiResult; no HTTP or transport error
escapes issue()/verify().
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HOLDER = "Unknown Holder"


def _positive_int(raw: str | None, fallback: int) -> int:
    if not raw:
        return fallback
    try:
        value = int(raw.strip())
    except ValueError:
        return fallback
    return value if value > 0 else fallback


def _base_url(raw: str | None, local_port: int, service_name: str) -> str:
    trimmed = (raw or "").strip()
    if trimmed:
        return trimmed.rstrip("/")
    fallback = f"http://localhost:{local_port}"
    logger.debug("No %s service URL configured; using %s", service_name, fallback)
    return fallback


@dataclass(frozen=True)
class ClientSettings:
    issuance_url: str = "http://localhost:4001"
    verify_url: str = "http://localhost:4002"
    timeout_ms: int = 15000
    retry_attempts: int = 3
    retry_delay_ms: int = 500

    @staticmethod
    def from_env() -> ClientSettings:
        return ClientSettings(
            issuance_url=_base_url(os.environ.get("ISSUANCE_URL"), 4001, "issuance"),
            verify_url=_base_url(os.environ.get("VERIFY_URL"), 4002, "verification"),
            timeout_ms=_positive_int(os.environ.get("API_TIMEOUT_MS"), 15000),
            retry_attempts=_positive_int(os.environ.get("API_RETRY_ATTEMPTS"), 3),
            retry_delay_ms=_positive_int(os.environ.get("API_RETRY_DELAY_MS"), 500),
        )


@dataclass(frozen=True)
class ApiResult:
    ok: bool
    status: int | None = None
    data: Any = None
    error: Any = None


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 429


class CredentialClient:
    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or ClientSettings.from_env()
        self._sleep = sleep
        self._http = httpx.Client(
            timeout=self._settings.timeout_ms / 1000,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> CredentialClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def issue(self, payload: dict[str, Any]) -> ApiResult:
        return self._post(f"{self._settings.issuance_url}/issue", payload)

    def verify(self, credential_id: str) -> ApiResult:
        return self._post(f"{self._settings.verify_url}/verify", {"id": credential_id})

    def _post(self, url: str, payload: dict[str, Any]) -> ApiResult:
        attempts = max(1, self._settings.retry_attempts)
        for attempt in range(1, attempts + 1):
            try:
                resp = self._http.post(url, json=payload)
            except httpx.TransportError as exc:
                if attempt >= attempts:
                    logger.error("POST %s failed after %d attempts: %s", url, attempt, exc)
                    return ApiResult(ok=False, error=str(exc) or type(exc).__name__)
                logger.warning("POST %s attempt %d failed: %s", url, attempt, exc)
            else:
                if resp.is_success:
                    return ApiResult(ok=True, status=resp.status_code, data=_body(resp))
                if not _is_retryable_status(resp.status_code) or attempt >= attempts:
                    return ApiResult(
                        ok=False, status=resp.status_code, error=_body(resp)
                    )
                logger.warning(
                    "POST %s attempt %d returned %d", url, attempt, resp.status_code
                )
            self._sleep(self._settings.retry_delay_ms * 2 ** (attempt - 1) / 1000)

        raise AssertionError("unreachable")  # loop always returns on the last attempt


def _body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def build_issue_payload(
    credential_id: str, holder: str | None = None, metadata: str | None = None
) -> dict[str, Any]:
    parsed = json.loads(metadata) if metadata else {}
    if not isinstance(parsed, dict):
        raise ValueError("metadata must be a JSON object")
    return {"id": credential_id, "holder": holder or DEFAULT_HOLDER, "metadata": parsed}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Issue or verify a credential")
    sub = parser.add_subparsers(dest="command", required=True)
    issue_cmd = sub.add_parser("issue")
    issue_cmd.add_argument("id")
    issue_cmd.add_argument("--holder", default=None)
    issue_cmd.add_argument("--metadata", default=None, help="JSON object")
    verify_cmd = sub.add_parser("verify")
    verify_cmd.add_argument("id")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(message)s")

    with CredentialClient() as client:
        if args.command == "issue":
            try:
                payload = build_issue_payload(args.id, args.holder, args.metadata)
            except ValueError as exc:
                parser.error(str(exc))
            result = client.issue(payload)
        else:
            result = client.verify(args.id)

    print(json.dumps(asdict(result), indent=2, default=str))
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
