"""
cep_weather.clients.weatherapi

WeatherAPI client: city name -> current temperature in Celsius.

Responsibilities:
- Require the API key before any network call.
- Query `GET /v1/current.json` inside a `weather-lookup` span.
- Map auth rejections, embedded provider errors and bad payloads onto tagged errors.
"""

from __future__ import annotations

import asyncio

import httpx
from opentelemetry.context import Context
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from cep_weather.clients import UPSTREAM_DEADLINE
from cep_weather.errors import CepWeatherError, NotFoundError, UpstreamError
from cep_weather.observability.logging import get_logger
from cep_weather.observability.tracing import Telemetry, child_context, record_error

log = get_logger(__name__)

# WeatherAPI: "No location found matching parameter 'q'".
CITY_NOT_FOUND_CODE = 1006


class _Current(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temp_c: float


class _ProviderError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: int
    message: str = ""


class CurrentWeatherPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: _Current | None = None
    error: _ProviderError | None = None


class WeatherApiClient:
    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str | None,
        telemetry: Telemetry,
        deadline: float = UPSTREAM_DEADLINE,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._telemetry = telemetry
        self._deadline = deadline

    async def current_celsius(self, city: str, *, context: Context) -> float:
        with self._telemetry.start_span("weather-lookup", context=context) as span:
            span.set_attribute("city", city)
            try:
                temp_c = await self._fetch(city, context=child_context(span, context))
            except CepWeatherError as e:
                record_error(span, e)
                log.warning("weatherapi.failed", city=city, error=str(e))
                raise

            span.set_attribute("temperature.celsius", temp_c)
            return temp_c

    async def _fetch(self, city: str, *, context: Context) -> float:
        if not self._api_key:
            raise UpstreamError("WEATHERAPI_KEY not set")

        try:
            async with asyncio.timeout(self._deadline):
                r = await self._http.get(
                    f"{self._base_url}/v1/current.json",
                    params={"key": self._api_key, "q": city, "aqi": "no"},
                    headers=self._telemetry.inject(context),
                )
        except TimeoutError as e:
            raise UpstreamError(f"weatherapi request exceeded {self._deadline}s", cause=e) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"weatherapi request failed: {e}", cause=e) from e

        if r.status_code in (HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN):
            raise UpstreamError(f"weatherapi auth error: {r.status_code}")

        try:
            payload = CurrentWeatherPayload.model_validate_json(r.content)
        except PydanticValidationError as e:
            raise UpstreamError(f"weatherapi payload undecodable: {e}", cause=e) from e

        if payload.error is not None:
            if payload.error.code == CITY_NOT_FOUND_CODE:
                raise NotFoundError("city not found")
            raise UpstreamError(
                f"weatherapi error {payload.error.code}: {payload.error.message}"
            )
        if payload.current is None:
            raise UpstreamError("weatherapi payload has no current conditions")
        return payload.current.temp_c


# --- Module Notes -----------------------------------------------------------
# The API key travels as a query parameter, so request URLs must never be logged
# or put on spans.
