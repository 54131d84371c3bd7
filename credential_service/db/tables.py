"""SQLAlchemy table definitions.

Maps the frozen IssuedCredential dataclass in models/credential.py.
The repo converts between rows and the domain dataclass.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from credential_service.db.engine import Base


class IssuedCredentialRow(Base):
    __tablename__ = "issued_credentials"

    # The primary key IS the uniqueness constraint that makes issuance
    # race-safe; the application-level lookup is only an optimization.
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    holder: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    issued_at: Mapped[str] = mapped_column(String(32), nullable=False)
    worker_id: Mapped[str] = mapped_column(Text, nullable=False)
