"""
cep_weather.clients

Outbound HTTP client boundaries.

Responsibilities:
- Wrap ViaCEP, WeatherAPI and the resolver service behind small async clients.
- Translate transport/payload failures into tagged `CepWeatherError` variants.
- Bound every outbound call (connect, headers and full body) by one deadline.
"""

from __future__ import annotations

import httpx

# Seconds. Every outbound call (gateway -> resolver, resolver -> providers)
# must finish within this bound, body included.
UPSTREAM_DEADLINE = 10.0

# httpx only bounds each individual socket operation; the clients wrap each call
# in `asyncio.timeout(deadline)` for the total.
UPSTREAM_TIMEOUT = httpx.Timeout(UPSTREAM_DEADLINE)


def build_http_client(
    *,
    base_url: str = "",
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, timeout=UPSTREAM_TIMEOUT, transport=transport)


# --- Module Notes -----------------------------------------------------------
# Route handlers depend on these boundaries, never on httpx exceptions directly.
