"""
cep_weather.api

API package for the gateway and resolver services.

Responsibilities:
- FastAPI app factories and router modules.
- API-layer dependency wiring.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: decode + validate, open spans, delegate, map errors.
