"""
cep_weather.errors

Tagged error variants shared by both services.

Responsibilities:
- Give each failure class its own exception type (validation, not-found, upstream).
- Map a variant to its fixed HTTP status and public message in one place.
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

INVALID_ZIPCODE = "invalid zipcode"
ZIPCODE_NOT_FOUND = "can not find zipcode"
INTERNAL_ERROR = "internal server error"


class CepWeatherError(Exception):
    """
    Base class for expected request failures.

    `cause` is the underlying error (if any). It is recorded on spans and logs
    and never written into a response body.
    """

    def __init__(self, detail: str, *, cause: BaseException | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.cause = cause


class ValidationError(CepWeatherError):
    """Malformed request body or postal code."""


class NotFoundError(CepWeatherError):
    """Postal code unknown to ViaCEP, or city unknown to WeatherAPI."""


class UpstreamError(CepWeatherError):
    """Network failure, timeout, bad payload, missing credential or auth rejection."""


def error_response(exc: CepWeatherError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        status_code, message = 422, INVALID_ZIPCODE
    elif isinstance(exc, NotFoundError):
        status_code, message = 404, ZIPCODE_NOT_FOUND
    else:
        status_code, message = 500, INTERNAL_ERROR
    return JSONResponse(status_code=status_code, content={"message": message})


def internal_error_response() -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": INTERNAL_ERROR})


# --- Module Notes -----------------------------------------------------------
# Lower layers raise these; only route handlers turn them into responses.
