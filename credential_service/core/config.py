from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_positive_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int | None
    database_url: str | None
    redis_url: str | None
    db_name: str = "kube_credential"
    worker_id: str | None = None
    cors_origins: tuple[str, ...] = ("*",)
    store_timeout_ms: int = 5000
    tls_cert_file: str | None = None
    tls_key_file: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def store_timeout_seconds(self) -> float:
        return self.store_timeout_ms / 1000

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert_file and self.tls_key_file)


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    port: int | None = None
    if port_raw:
        try:
            port = int(port_raw)
        except ValueError:
            raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    cors_origins = tuple(
        origin.strip()
        for origin in _getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        db_name=_getenv("DB_NAME", "kube_credential") or "kube_credential",
        worker_id=_getenv("WORKER_ID", "") or None,
        cors_origins=cors_origins or ("*",),
        store_timeout_ms=_getenv_positive_int("STORE_TIMEOUT_MS", 5000),
        tls_cert_file=_getenv("TLS_CERT_FILE", "") or None,
        tls_key_file=_getenv("TLS_KEY_FILE", "") or None,
    )
