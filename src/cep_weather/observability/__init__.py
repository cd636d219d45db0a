"""
cep_weather.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for consistent log enrichment.
- Explicit tracing context (provider, tracer, propagator) owned by each app.
"""

# Package marker.
