"""Run one of the two services under uvicorn.

RUN:  python -m credential_service.serve issuance
      python -m credential_service.serve verification --port 4102

Same image, different command: one replica per service per WORKER_ID:

  issuance:     WORKER_ID=issuer-1   python -m credential_service.serve issuance
  verification: WORKER_ID=verifier-1 python -m credential_service.serve verification

HTTPS is enabled when TLS_CERT_FILE and TLS_KEY_FILE are both set; the
certificate and key are PEM files handed straight to uvicorn.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from credential_service.core.config import Settings, load_settings
from credential_service.core.logging import setup_logging
from credential_service.main import DEFAULT_PORTS, ServiceName

logger = logging.getLogger("credential_service.serve")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("service", choices=[s.value for s in ServiceName])
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=None)
    return parser.parse_args(argv)


def uvicorn_options(service: ServiceName, settings: Settings, port: int | None) -> dict:
    """Keyword arguments for uvicorn.run(); split out so tests can inspect them."""
    options: dict = {
        "port": port or settings.port or DEFAULT_PORTS[service],
        # Our own setup_logging() owns the root logger.
        "log_config": None,
    }
    if settings.tls_cert_file or settings.tls_key_file:
        if not settings.tls_enabled:
            raise ValueError("TLS_CERT_FILE and TLS_KEY_FILE must be set together")
        for path in (settings.tls_cert_file, settings.tls_key_file):
            if not Path(path).is_file():  # type: ignore[arg-type]
                raise ValueError(f"TLS file not found: {path}")
        options["ssl_certfile"] = settings.tls_cert_file
        options["ssl_keyfile"] = settings.tls_key_file
    return options


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    service = ServiceName(args.service)
    settings = load_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    try:
        options = uvicorn_options(service, settings, args.port)
    except ValueError as exc:
        logger.error("%s", exc)
        sys.exit(2)

    logger.info(
        "Starting %s service on %s:%d (%s)",
        service,
        args.host,
        options["port"],
        "https" if "ssl_certfile" in options else "http",
    )
    uvicorn.run(f"credential_service.main:{service}_app", host=args.host, **options)


if __name__ == "__main__":
    main()
