"""
cep_weather.api.routers.weather

Resolver endpoint: `POST /weather`.

Responsibilities:
- Open the `weather-endpoint` span under the inbound SERVER span (or the
  caller's trace context when uninstrumented).
- Validate the CEP, run the lookup pipeline, annotate the span with the result.
- Map tagged errors to 404/422/500 responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from cep_weather.api.deps import telemetry_dep, weather_service_dep
from cep_weather.errors import CepWeatherError, UpstreamError, ValidationError, error_response
from cep_weather.observability.logging import get_logger
from cep_weather.observability.tracing import Telemetry, child_context, record_error
from cep_weather.services.weather_service import WeatherService
from cep_weather.validation import parse_cep_request

router = APIRouter(tags=["weather"])

log = get_logger(__name__)


@router.post("/weather")
async def weather(
    request: Request,
    telemetry: Telemetry = Depends(telemetry_dep),
    service: WeatherService = Depends(weather_service_dep),
) -> JSONResponse:
    parent = telemetry.request_context(request.headers)
    with telemetry.start_span("weather-endpoint", context=parent) as span:
        try:
            cep = parse_cep_request(await request.body())
            span.set_attribute("cep", cep)
            result = await service.resolve(cep, context=child_context(span, parent))
        except CepWeatherError as e:
            # Upstream faults and undecodable bodies mark the span; 404s and bad formats do not.
            if isinstance(e, UpstreamError) or (
                isinstance(e, ValidationError) and e.cause is not None
            ):
                record_error(span, e.cause or e)
            log.info("weather.rejected", reason=type(e).__name__, detail=e.detail)
            return error_response(e)
        except Exception as e:
            # Answered by the app's catch-all handler with a 500.
            record_error(span, e)
            raise

        span.set_attribute("response.city", result.city)
        span.set_attribute("response.temp_c", result.temp_c)
        span.set_attribute("response.temp_f", result.temp_f)
        span.set_attribute("response.temp_k", result.temp_k)
        return JSONResponse(content=result.as_payload())
