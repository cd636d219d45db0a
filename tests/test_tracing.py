"""
tests.test_tracing

Tracing context lifecycle: ordered idempotent shutdown, header propagation, and
span-export failures staying invisible to callers.
"""

from __future__ import annotations

from collections.abc import Sequence
from unittest.mock import MagicMock

import pytest
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExporter, SpanExportResult

from cep_weather.api.app import create_resolver_app
from cep_weather.observability.tracing import Telemetry, child_context, configure_tracing


class ExplodingExporter(SpanExporter):
    def __init__(self) -> None:
        self.attempts = 0

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        self.attempts += 1
        raise ConnectionError("collector unreachable")

    def shutdown(self) -> None:
        pass


def test_shutdown_flushes_then_releases_once() -> None:
    provider = MagicMock()
    provider.force_flush.return_value = True
    telemetry = Telemetry(provider=provider, service_name="cep-gateway")

    telemetry.shutdown()
    telemetry.shutdown()

    # `method_calls` leaves out dunder calls such as the truth test on the flush result.
    assert [name for name, _, _ in provider.method_calls] == [
        "get_tracer",
        "force_flush",
        "shutdown",
    ]


def test_shutdown_still_releases_after_flush_timeout() -> None:
    provider = MagicMock()
    provider.force_flush.return_value = False
    telemetry = Telemetry(provider=provider, service_name="cep-gateway")

    telemetry.shutdown()

    provider.force_flush.assert_called_once_with()
    provider.shutdown.assert_called_once_with()


def test_shutdown_swallows_exporter_errors() -> None:
    provider = MagicMock()
    provider.force_flush.side_effect = ConnectionError("collector unreachable")
    provider.shutdown.side_effect = RuntimeError("already closed")
    telemetry = Telemetry(provider=provider, service_name="weather-resolver")

    telemetry.shutdown()

    provider.shutdown.assert_called_once_with()


def test_inject_then_extract_keeps_parent(resolver_traced) -> None:
    telemetry = resolver_traced.telemetry

    with telemetry.start_span("call-service-b", context=Context()) as span:
        headers = telemetry.inject(child_context(span))

    assert headers["traceparent"].startswith("00-")
    extracted = trace.get_current_span(telemetry.extract(headers)).get_span_context()
    assert extracted.span_id == span.get_span_context().span_id
    assert extracted.trace_id == span.get_span_context().trace_id
    assert extracted.is_remote


def test_missing_traceparent_starts_new_trace(resolver_traced) -> None:
    telemetry = resolver_traced.telemetry

    with telemetry.start_span("weather-endpoint", context=telemetry.extract({})) as span:
        pass

    finished = resolver_traced.spans()["weather-endpoint"]
    assert finished.parent is None
    assert span.get_span_context().is_valid


def test_request_context_prefers_current_server_span(resolver_traced) -> None:
    telemetry = resolver_traced.telemetry
    headers = {"traceparent": "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"}

    with telemetry.start_span("POST /weather", context=telemetry.extract(headers)) as server:
        inside = trace.get_current_span(telemetry.request_context(headers))
    outside = trace.get_current_span(telemetry.request_context(headers))

    assert inside is server
    assert format(outside.get_span_context().span_id, "016x") == "00f067aa0ba902b7"


def test_spans_are_not_installed_globally(resolver_traced) -> None:
    assert trace.get_tracer_provider() is not resolver_traced.telemetry.provider


@pytest.mark.asyncio
async def test_export_failure_never_fails_request(resolver_settings, providers, serve_app) -> None:
    exporter = ExplodingExporter()
    telemetry = configure_tracing(
        service_name="weather-resolver", span_processor=SimpleSpanProcessor(exporter)
    )
    app = create_resolver_app(
        settings=resolver_settings, telemetry=telemetry, transport=providers.transport()
    )

    async with serve_app(app) as client:
        r = await client.post("/weather", json={"cep": "29902555"})

    assert r.status_code == 200
    assert r.json()["city"] == "São Paulo"
    assert exporter.attempts >= 3
