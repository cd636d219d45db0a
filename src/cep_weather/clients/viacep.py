"""
cep_weather.clients.viacep

ViaCEP client: postal code -> city.

Responsibilities:
- Query `GET /ws/{cep}/json/` inside a `viacep-lookup` span.
- Tell "unknown CEP" (NotFoundError) apart from transport/payload faults (UpstreamError).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
from opentelemetry.context import Context
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from cep_weather.clients import UPSTREAM_DEADLINE
from cep_weather.errors import NotFoundError, UpstreamError
from cep_weather.observability.logging import get_logger
from cep_weather.observability.tracing import Telemetry, child_context, record_error

log = get_logger(__name__)


class ViaCepPayload(BaseModel):
    """
    Subset of the ViaCEP response we rely on.

    ViaCEP answers unknown codes with `{"erro": true}` (older API) or
    `{"erro": "true"}` (current API); lax bool parsing accepts both.
    """

    model_config = ConfigDict(extra="ignore")

    cep: str = ""
    localidade: str = ""
    uf: str = ""
    erro: bool = False


@dataclass(frozen=True, slots=True)
class CepLocation:
    city: str
    state: str


class ViaCepClient:
    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        base_url: str,
        telemetry: Telemetry,
        deadline: float = UPSTREAM_DEADLINE,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._telemetry = telemetry
        self._deadline = deadline

    async def city_for(self, cep: str, *, context: Context) -> CepLocation:
        with self._telemetry.start_span("viacep-lookup", context=context) as span:
            span.set_attribute("cep", cep)

            try:
                async with asyncio.timeout(self._deadline):
                    r = await self._http.get(
                        f"{self._base_url}/ws/{cep}/json/",
                        headers=self._telemetry.inject(child_context(span, context)),
                    )
                payload = ViaCepPayload.model_validate_json(r.content)
            except TimeoutError as e:
                record_error(span, e)
                log.warning("viacep.deadline_exceeded", cep=cep, deadline=self._deadline)
                raise UpstreamError(f"viacep lookup exceeded {self._deadline}s", cause=e) from e
            except (httpx.HTTPError, PydanticValidationError) as e:
                record_error(span, e)
                log.warning("viacep.failed", cep=cep, error=str(e))
                raise UpstreamError(f"viacep lookup failed: {e}", cause=e) from e

            if payload.erro:
                # Expected outcome, not a fault: flag it, leave the span status alone.
                span.set_attribute("cep.not_found", True)
                log.info("viacep.not_found", cep=cep)
                raise NotFoundError(f"cep {cep} not found")

            span.set_attribute("city", payload.localidade)
            span.set_attribute("state", payload.uf)
            return CepLocation(city=payload.localidade, state=payload.uf)
