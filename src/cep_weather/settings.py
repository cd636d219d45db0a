"""
cep_weather.settings

Central configuration models (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for both services.
- Hide the weather provider credential from repr/logging.
- Offer cached settings instances for the entrypoints.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ZIPKIN_ENDPOINT = "http://zipkin:9411/api/v2/spans"


class ServiceSettings(BaseSettings):
    """
    Settings shared by the gateway and the resolver.

    No env prefix: fields are read from the bare variable names
    (OTEL_EXPORTER_ZIPKIN_ENDPOINT, WEATHERAPI_KEY, RESOLVER_URL, ...).
    """

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    service_name: str
    service_version: str = "v1.0.0"
    log_level: str = "INFO"

    http_host: str = "0.0.0.0"
    http_port: int

    # Tracing
    otel_exporter_zipkin_endpoint: str = DEFAULT_ZIPKIN_ENDPOINT


class GatewaySettings(ServiceSettings):
    service_name: str = "cep-gateway"
    http_port: int = 8080

    # Where the resolver service listens; the gateway POSTs to `{resolver_url}/weather`.
    resolver_url: str = "http://service-b:8081"


class ResolverSettings(ServiceSettings):
    service_name: str = "weather-resolver"
    http_port: int = 8081

    viacep_base_url: str = "https://viacep.com.br"
    weatherapi_base_url: str = "https://api.weatherapi.com"
    # Optional at startup; every weather lookup fails with 500 while it is unset.
    weatherapi_key: str | None = Field(default=None, repr=False)


@lru_cache(maxsize=1)
def get_gateway_settings() -> GatewaySettings:
    return GatewaySettings()


@lru_cache(maxsize=1)
def get_resolver_settings() -> ResolverSettings:
    return ResolverSettings()


# --- Module Notes -----------------------------------------------------------
# The upstream deadline is not configurable: every outbound call is bounded by 10
# seconds in total (see `cep_weather.clients.UPSTREAM_DEADLINE`).
