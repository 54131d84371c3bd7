from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any


def utc_timestamp(now: datetime.datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision: 2025-06-01T12:00:00.000Z"""
    now = now or datetime.datetime.now(datetime.UTC)
    now = now.astimezone(datetime.UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class Credential:
    """Unissued input record, keyed by a caller-supplied opaque id."""

    id: str
    holder: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_payload(
        *,
        id: str | None,
        holder: Any = None,
        metadata: Any = None,
        extra: dict[str, Any] | None = None,
    ) -> Credential:
        """Build from a request body. Only the id is validated.

        Unknown top-level fields land in metadata.  A non-object metadata
        value or a non-string holder is kept as-is under its own key in
        metadata, so nothing the caller sent is dropped.
        """
        merged = dict(extra or {})
        if isinstance(metadata, dict):
            merged.update(metadata)
        elif metadata is not None:
            merged["metadata"] = metadata
        if holder is not None and not isinstance(holder, str):
            merged["holder"] = holder
            holder = None
        return Credential(id=id, holder=holder, metadata=merged)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class IssuedCredential:
    """The only entity the store persists. Never mutated after insertion."""

    id: str
    issued_at: str
    worker_id: str
    holder: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_credential(
        credential: Credential, *, worker_id: str, issued_at: str | None = None
    ) -> IssuedCredential:
        return IssuedCredential(
            id=credential.id,
            holder=credential.holder,
            metadata=dict(credential.metadata),
            issued_at=issued_at or utc_timestamp(),
            worker_id=worker_id,
        )

    def to_document(self) -> dict[str, Any]:
        """Wire/document shape, camelCase like the HTTP API."""
        return {
            "id": self.id,
            "holder": self.holder,
            "metadata": self.metadata,
            "issuedAt": self.issued_at,
            "workerId": self.worker_id,
        }

    @staticmethod
    def from_document(doc: dict[str, Any]) -> IssuedCredential:
        return IssuedCredential(
            id=doc["id"],
            holder=doc.get("holder"),
            metadata=dict(doc.get("metadata") or {}),
            issued_at=doc["issuedAt"],
            worker_id=doc["workerId"],
        )
