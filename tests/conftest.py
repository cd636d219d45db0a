"""
tests.conftest

Shared fixtures: in-memory tracing, fake upstream providers, in-process apps.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind

from cep_weather.api.app import create_gateway_app, create_resolver_app
from cep_weather.observability.tracing import Telemetry, configure_tracing
from cep_weather.settings import GatewaySettings, ResolverSettings

VIACEP_HOST = "viacep.test"
WEATHERAPI_HOST = "weatherapi.test"


@dataclass
class Traced:
    telemetry: Telemetry
    exporter: InMemorySpanExporter

    def spans(self) -> dict[str, ReadableSpan]:
        return {s.name: s for s in self.exporter.get_finished_spans()}

    def of_kind(self, kind: SpanKind) -> list[ReadableSpan]:
        return [s for s in self.exporter.get_finished_spans() if s.kind is kind]


def make_traced(service_name: str) -> Traced:
    exporter = InMemorySpanExporter()
    telemetry = configure_tracing(
        service_name=service_name, span_processor=SimpleSpanProcessor(exporter)
    )
    return Traced(telemetry=telemetry, exporter=exporter)


@dataclass
class FakeProviders:
    """
    Stands in for ViaCEP + WeatherAPI behind an `httpx.MockTransport`.

    `addresses` maps CEP -> ViaCEP payload; unknown CEPs answer `{"erro": "true"}`.
    `temperatures` maps city -> temp_c; unknown cities answer error 1006.
    """

    addresses: dict[str, dict[str, Any]] = field(default_factory=dict)
    temperatures: dict[str, float] = field(default_factory=dict)
    weather_override: Callable[[httpx.Request], httpx.Response] | None = None
    viacep_override: Callable[[httpx.Request], httpx.Response] | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == VIACEP_HOST:
            if self.viacep_override is not None:
                return self.viacep_override(request)
            cep = request.url.path.split("/")[2]
            payload = self.addresses.get(cep, {"erro": "true"})
            return httpx.Response(200, json=payload)
        if request.url.host == WEATHERAPI_HOST:
            if self.weather_override is not None:
                return self.weather_override(request)
            city = request.url.params["q"]
            if city not in self.temperatures:
                return httpx.Response(
                    400,
                    json={"error": {"code": 1006, "message": "No matching location found."}},
                )
            return httpx.Response(
                200,
                content=json.dumps(
                    {"location": {"name": city}, "current": {"temp_c": self.temperatures[city]}}
                ).encode(),
                headers={"content-type": "application/json"},
            )
        raise AssertionError(f"unexpected request to {request.url}")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders(
        addresses={
            "29902555": {"cep": "29902-555", "localidade": "São Paulo", "uf": "SP"},
        },
        temperatures={"São Paulo": 28.5},
    )


@pytest.fixture
def resolver_settings() -> ResolverSettings:
    return ResolverSettings(
        viacep_base_url=f"http://{VIACEP_HOST}",
        weatherapi_base_url=f"http://{WEATHERAPI_HOST}",
        weatherapi_key="test-key",
    )


@pytest.fixture
def resolver_traced() -> Traced:
    return make_traced("weather-resolver")


@pytest.fixture
def resolver_app(
    resolver_settings: ResolverSettings, resolver_traced: Traced, providers: FakeProviders
) -> FastAPI:
    return create_resolver_app(
        settings=resolver_settings,
        telemetry=resolver_traced.telemetry,
        transport=providers.transport(),
    )


@pytest_asyncio.fixture
async def resolver_client(resolver_app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with serve(resolver_app) as client:
        yield client


@pytest.fixture
def gateway_traced() -> Traced:
    return make_traced("cep-gateway")


@pytest.fixture
def gateway_factory(gateway_traced: Traced) -> Callable[[httpx.AsyncBaseTransport], FastAPI]:
    """Builds a gateway whose outbound calls go through `transport`."""

    def factory(transport: httpx.AsyncBaseTransport) -> FastAPI:
        return create_gateway_app(
            settings=GatewaySettings(resolver_url="http://resolver.test"),
            telemetry=gateway_traced.telemetry,
            transport=transport,
        )

    return factory


@asynccontextmanager
async def serve(
    app: FastAPI, *, raise_app_exceptions: bool = True
) -> AsyncIterator[httpx.AsyncClient]:
    # httpx's ASGITransport does not run lifespan events; drive them explicitly.
    # `raise_app_exceptions=False` hands back the 500 the app already sent.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def serve_app():
    return serve
