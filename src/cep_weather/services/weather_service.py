"""
cep_weather.services.weather_service

Resolver pipeline: CEP -> city -> temperature -> WeatherResult.

Responsibilities:
- Run the two provider lookups strictly in sequence (the city is needed first).
- Build the converted result.
"""

from __future__ import annotations

from opentelemetry.context import Context

from cep_weather.clients.viacep import ViaCepClient
from cep_weather.clients.weatherapi import WeatherApiClient
from cep_weather.temperature import WeatherResult


class WeatherService:
    def __init__(self, *, cep_client: ViaCepClient, weather_client: WeatherApiClient) -> None:
        self._cep_client = cep_client
        self._weather_client = weather_client

    async def resolve(self, cep: str, *, context: Context) -> WeatherResult:
        # NotFoundError / UpstreamError propagate untouched; the route maps them.
        location = await self._cep_client.city_for(cep, context=context)
        temp_c = await self._weather_client.current_celsius(location.city, context=context)
        return WeatherResult.from_celsius(location.city, temp_c)
