"""
cep_weather.api.app

FastAPI app factories for the front gateway and the weather resolver.

Responsibilities:
- Build each FastAPI application and register routers/middleware.
- Own the process-wide infrastructure (tracing context, outbound HTTP client)
  and release it in order on shutdown.
- Instrument inbound requests and the outbound client so SERVER and CLIENT
  spans bracket every network hop.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cep_weather import __version__
from cep_weather.api.routers.cep import router as cep_router
from cep_weather.api.routers.health import router as health_router
from cep_weather.api.routers.weather import router as weather_router
from cep_weather.clients import build_http_client
from cep_weather.clients.resolver import ResolverClient
from cep_weather.clients.viacep import ViaCepClient
from cep_weather.clients.weatherapi import WeatherApiClient
from cep_weather.errors import internal_error_response
from cep_weather.observability.logging import configure_logging, get_logger
from cep_weather.observability.middleware import RequestContextMiddleware
from cep_weather.observability.tracing import Telemetry, configure_tracing
from cep_weather.services.weather_service import WeatherService
from cep_weather.settings import GatewaySettings, ResolverSettings, ServiceSettings

log = get_logger(__name__)


def create_gateway_app(
    *,
    settings: GatewaySettings,
    telemetry: Telemetry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    `telemetry` and `transport` let tests swap the Zipkin exporter and the
    network for in-process fakes.
    """

    telemetry = telemetry or _telemetry_for(settings)
    http = build_http_client(base_url=settings.resolver_url, transport=transport)

    app = _base_app(settings=settings, title="CEP Gateway", telemetry=telemetry, http=http)
    app.state.resolver_client = ResolverClient(http=http, telemetry=telemetry)
    app.include_router(cep_router)
    return app


def create_resolver_app(
    *,
    settings: ResolverSettings,
    telemetry: Telemetry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    telemetry = telemetry or _telemetry_for(settings)
    http = build_http_client(transport=transport)

    app = _base_app(settings=settings, title="CEP Weather Resolver", telemetry=telemetry, http=http)
    app.state.weather_service = WeatherService(
        cep_client=ViaCepClient(
            http=http, base_url=settings.viacep_base_url, telemetry=telemetry
        ),
        weather_client=WeatherApiClient(
            http=http,
            base_url=settings.weatherapi_base_url,
            api_key=settings.weatherapi_key,
            telemetry=telemetry,
        ),
    )
    app.include_router(weather_router)
    return app


def _telemetry_for(settings: ServiceSettings) -> Telemetry:
    return configure_tracing(
        service_name=settings.service_name,
        service_version=settings.service_version,
        zipkin_endpoint=settings.otel_exporter_zipkin_endpoint,
    )


def _base_app(
    *,
    settings: ServiceSettings,
    title: str,
    telemetry: Telemetry,
    http: httpx.AsyncClient,
) -> FastAPI:
    telemetry.instrument_client(http)
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", port=settings.http_port)
        try:
            yield
        finally:
            # Order matters: stop issuing outbound calls, then flush spans, then
            # release the exporter.
            await http.aclose()
            telemetry.shutdown()
            log.info("shutdown")

    app = FastAPI(
        title=title,
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.telemetry = telemetry
    app.state.http = http

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(health_router, tags=["health"])
    telemetry.instrument_app(app)
    return app


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    # Anything unexpected still answers with the fixed public vocabulary. Routes
    # have already marked their spans; the SERVER span records it as well.
    log.exception("unhandled_error", error=str(exc))
    return internal_error_response()


# --- Module Notes -----------------------------------------------------------
# Business logic stays in routers/services/clients; this module only wires them.
