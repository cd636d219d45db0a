"""
cep_weather.observability.tracing

OpenTelemetry tracing context for one service process.

Responsibilities:
- Build a TracerProvider exporting to Zipkin through a batch processor.
- Thread trace context explicitly (extract from / inject into HTTP headers).
- Instrument the FastAPI app (SERVER spans) and its outbound httpx client
  (CLIENT spans) against this provider.
- Open spans as children of an explicit parent context.
- Flush and release the exporter exactly once at shutdown.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

import httpx
from fastapi import FastAPI
from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.exporter.zipkin.json import ZipkinExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from cep_weather.observability.logging import get_logger
from cep_weather.settings import DEFAULT_ZIPKIN_ENDPOINT

log = get_logger(__name__)


class Telemetry:
    """
    Process-wide tracing state, constructed once per app and passed to handlers.

    The provider is not installed as the OpenTelemetry global: two apps
    (gateway + resolver) may share one process, e.g. in tests.
    """

    def __init__(self, *, provider: TracerProvider, service_name: str) -> None:
        self.provider = provider
        self.service_name = service_name
        self.tracer = provider.get_tracer(service_name)
        self._propagator = TraceContextTextMapPropagator()
        self._lock = threading.Lock()
        self._shut_down = False

    def extract(self, headers: Mapping[str, str]) -> Context:
        # An absent/invalid traceparent yields an empty context -> root span.
        return self._propagator.extract(carrier=dict(headers))

    def request_context(self, headers: Mapping[str, str]) -> Context:
        """
        Parent context for the first span a route opens.

        Under server instrumentation the current context already holds the SERVER
        span, itself a child of the caller's `traceparent`. Without it, the
        headers are extracted directly.
        """

        current = otel_context.get_current()
        if trace.get_current_span(current).get_span_context().is_valid:
            return current
        return self.extract(headers)

    def instrument_app(self, app: FastAPI) -> None:
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.provider, excluded_urls="healthz"
        )

    def instrument_client(self, client: httpx.AsyncClient) -> None:
        HTTPXClientInstrumentor.instrument_client(
            client, tracer_provider=self.provider, request_hook=_redact_credentials
        )

    def inject(self, context: Context) -> dict[str, str]:
        carrier: dict[str, str] = {}
        self._propagator.inject(carrier, context=context)
        return carrier

    @contextmanager
    def start_span(self, name: str, *, context: Context | None = None) -> Iterator[Span]:
        # Exceptions leave the span untouched; callers record failures with `record_error`.
        with self.tracer.start_as_current_span(
            name,
            context=context,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            yield span

    def shutdown(self) -> None:
        """
        Flush pending spans, then release the exporter.

        Safe to call more than once (app shutdown + atexit). Export errors are
        logged and swallowed.
        """

        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True

        try:
            flushed = self.provider.force_flush()
            if not flushed:
                log.warning("tracing.flush_timeout", service=self.service_name)
        except Exception as e:
            log.warning("tracing.flush_failed", error=str(e))
        try:
            self.provider.shutdown()
        except Exception as e:
            log.warning("tracing.shutdown_failed", error=str(e))
        log.info("tracing.shutdown")


# Query parameters that carry credentials (WeatherAPI takes its key as `key`).
_SECRET_PARAMS = ("key",)


async def _redact_credentials(span: Span, request) -> None:
    # CLIENT spans record the full URL; secrets in the query must not reach the collector.
    if not span.is_recording():
        return
    url = httpx.URL(request.url)
    leaked = [name for name in _SECRET_PARAMS if name in url.params]
    if not leaked:
        return
    for name in leaked:
        url = url.copy_set_param(name, "REDACTED")
    attributes = getattr(span, "attributes", None) or {}
    for attr in ("url.full", "http.url"):
        if attr in attributes:
            span.set_attribute(attr, str(url))


def child_context(span: Span, parent: Context | None = None) -> Context:
    return trace.set_span_in_context(span, parent)


def record_error(span: Span, exc: BaseException) -> None:
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


def build_resource(*, service_name: str, service_version: str) -> Resource:
    return Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "cep-weather",
            "service.version": service_version,
        }
    )


def configure_tracing(
    *,
    service_name: str,
    service_version: str = "v1.0.0",
    zipkin_endpoint: str = DEFAULT_ZIPKIN_ENDPOINT,
    span_processor: SpanProcessor | None = None,
) -> Telemetry:
    """
    Build the tracing context for a service.

    Args:
        service_name: reported as `service.name` on every span
        service_version: reported as `service.version`
        zipkin_endpoint: Zipkin v2 JSON spans endpoint
        span_processor: overrides the Zipkin batch exporter (tests use an
            in-memory exporter)
    """

    provider = TracerProvider(
        resource=build_resource(service_name=service_name, service_version=service_version)
    )
    if span_processor is None:
        span_processor = BatchSpanProcessor(ZipkinExporter(endpoint=zipkin_endpoint))
    provider.add_span_processor(span_processor)

    log.info("tracing.configured", service=service_name, endpoint=zipkin_endpoint)
    return Telemetry(provider=provider, service_name=service_name)


# --- Module Notes -----------------------------------------------------------
# BatchSpanProcessor exports on a background thread; a collector outage only
# produces SDK log lines, never a failed or slowed request.
