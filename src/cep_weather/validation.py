"""
cep_weather.validation

Postal-code (CEP) validation shared by the gateway and the resolver.

Responsibilities:
- Check the 8-digit CEP format.
- Decode a `{"cep": "..."}` request body into a validated code (key matched
  case-insensitively).
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as PydanticValidationError

from cep_weather.errors import ValidationError

# ASCII digits only: `\d` would also accept other Unicode decimal digits.
_CEP_RE = re.compile(r"[0-9]{8}")


class CepRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # A missing field decodes to "" and then fails the format check.
    cep: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fold_key_case(cls, data: Any) -> Any:
        # "CEP", "Cep", ... all fill `cep`; the last matching key wins.
        if isinstance(data, dict):
            matches = [value for key, value in data.items() if key.casefold() == "cep"]
            if matches:
                return {**data, "cep": matches[-1]}
        return data


def is_valid_cep(value: object) -> bool:
    return isinstance(value, str) and _CEP_RE.fullmatch(value) is not None


def parse_cep_request(raw: bytes) -> str:
    """
    Decode the request body and return the validated CEP.

    Raises `ValidationError` for undecodable bodies (with the pydantic error as
    `cause`) and for well-formed bodies carrying a badly shaped code.
    """

    try:
        body = CepRequest.model_validate_json(raw, strict=True)
    except PydanticValidationError as e:
        raise ValidationError("cannot decode request body", cause=e) from e

    if not is_valid_cep(body.cep):
        raise ValidationError(f"malformed cep {body.cep!r}")
    return body.cep
