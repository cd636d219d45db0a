"""
cep_weather.api.routers.cep

Gateway endpoint: `POST /cep`.

Responsibilities:
- Reject malformed CEPs before any network hop (`validate-cep` span).
- Forward valid ones to the resolver (`call-service-b` span, trace context in headers).
- Relay the resolver's status code and body byte-for-byte.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from cep_weather.api.deps import resolver_client_dep, telemetry_dep
from cep_weather.clients.resolver import ResolverClient
from cep_weather.errors import UpstreamError, ValidationError, error_response
from cep_weather.observability.logging import get_logger
from cep_weather.observability.tracing import Telemetry, child_context, record_error
from cep_weather.validation import parse_cep_request

router = APIRouter(tags=["cep"])

log = get_logger(__name__)


@router.post("/cep")
async def cep(
    request: Request,
    telemetry: Telemetry = Depends(telemetry_dep),
    resolver: ResolverClient = Depends(resolver_client_dep),
) -> Response:
    parent = telemetry.request_context(request.headers)
    with telemetry.start_span("validate-cep", context=parent) as span:
        try:
            code = parse_cep_request(await request.body())
        except ValidationError as e:
            if e.cause is not None:
                record_error(span, e.cause)
            log.info("cep.invalid", detail=e.detail)
            return error_response(e)
        except Exception as e:
            record_error(span, e)
            raise

        span.set_attribute("cep", code)

        validate_ctx = child_context(span, parent)
        with telemetry.start_span("call-service-b", context=validate_ctx) as call_span:
            try:
                reply = await resolver.forward(code, context=child_context(call_span, validate_ctx))
            except UpstreamError as e:
                record_error(call_span, e.cause or e)
                log.warning("cep.forward_failed", error=e.detail)
                return error_response(e)
            except Exception as e:
                # Answered by the app's catch-all handler with a 500.
                record_error(call_span, e)
                record_error(span, e)
                raise

            call_span.set_attribute("http.status_code", reply.status_code)
            # Passthrough: the resolver's payload is never re-interpreted.
            return Response(
                content=reply.content,
                status_code=reply.status_code,
                media_type="application/json",
            )
