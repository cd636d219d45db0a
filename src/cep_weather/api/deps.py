"""
cep_weather.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Encapsulate app.state access patterns (telemetry, outbound clients, services).
"""

from __future__ import annotations

from fastapi import Request

from cep_weather.clients.resolver import ResolverClient
from cep_weather.observability.tracing import Telemetry
from cep_weather.services.weather_service import WeatherService


def telemetry_dep(request: Request) -> Telemetry:
    # Created by the app factory (see `cep_weather.api.app`).
    return request.app.state.telemetry  # type: ignore[attr-defined]


def resolver_client_dep(request: Request) -> ResolverClient:
    return request.app.state.resolver_client  # type: ignore[attr-defined]


def weather_service_dep(request: Request) -> WeatherService:
    return request.app.state.weather_service  # type: ignore[attr-defined]
