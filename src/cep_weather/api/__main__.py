"""
cep_weather.api.__main__

Entrypoints for running either service.

    python -m cep_weather.api gateway
    python -m cep_weather.api resolver

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
- Make sure pending spans are flushed however the process exits.
"""

from __future__ import annotations

import atexit
import sys

import uvicorn
from fastapi import FastAPI

from cep_weather.api.app import create_gateway_app, create_resolver_app
from cep_weather.settings import ServiceSettings, get_gateway_settings, get_resolver_settings


def _serve(app: FastAPI, settings: ServiceSettings) -> None:
    # Lifespan shutdown covers SIGINT/SIGTERM; atexit covers everything else.
    # `Telemetry.shutdown` is idempotent.
    atexit.register(app.state.telemetry.shutdown)
    uvicorn.run(
        app,
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,  # structlog
    )


def gateway_main() -> None:
    settings = get_gateway_settings()
    _serve(create_gateway_app(settings=settings), settings)


def resolver_main() -> None:
    settings = get_resolver_settings()
    _serve(create_resolver_app(settings=settings), settings)


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    commands = {"gateway": gateway_main, "resolver": resolver_main}
    if len(args) != 1 or args[0] not in commands:
        sys.exit("usage: python -m cep_weather.api {gateway|resolver}")
    commands[args[0]]()


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# In compose/k8s each service runs in its own container with its own env
# (WEATHERAPI_KEY only needs to reach the resolver).
