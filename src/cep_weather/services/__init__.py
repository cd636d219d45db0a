"""
cep_weather.services

Service-layer package.

Responsibilities:
- Orchestrate the sequential lookups behind the resolver endpoint.
"""

# Package marker.
