"""
cep_weather.clients.resolver

Gateway -> resolver HTTP boundary.

Responsibilities:
- POST the validated CEP to the resolver's `/weather` endpoint.
- Carry the caller's trace context in the request headers.
- Hand back the resolver's status code and raw body untouched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
from opentelemetry.context import Context

from cep_weather.clients import UPSTREAM_DEADLINE
from cep_weather.errors import UpstreamError
from cep_weather.observability.tracing import Telemetry


@dataclass(frozen=True, slots=True)
class ResolverReply:
    status_code: int
    content: bytes


class ResolverClient:
    """
    `http` is expected to carry `base_url=<resolver_url>` (see `build_http_client`).
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        telemetry: Telemetry,
        deadline: float = UPSTREAM_DEADLINE,
    ) -> None:
        self._http = http
        self._telemetry = telemetry
        self._deadline = deadline

    async def forward(self, cep: str, *, context: Context) -> ResolverReply:
        headers = {"Content-Type": "application/json", **self._telemetry.inject(context)}
        try:
            async with asyncio.timeout(self._deadline):
                r = await self._http.post("/weather", json={"cep": cep}, headers=headers)
        except TimeoutError as e:
            raise UpstreamError(f"resolver call exceeded {self._deadline}s", cause=e) from e
        except httpx.HTTPError as e:
            # Connect errors, per-operation timeouts and body read failures alike.
            raise UpstreamError(f"resolver call failed: {e}", cause=e) from e
        return ResolverReply(status_code=r.status_code, content=r.content)
