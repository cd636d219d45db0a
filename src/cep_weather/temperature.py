"""
cep_weather.temperature

Temperature conversions and the resolver's result type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 1.8 + 32


def celsius_to_kelvin(celsius: float) -> float:
    # Fixed +273 offset (not 273.15); clients depend on these exact values.
    return celsius + 273


@dataclass(frozen=True, slots=True)
class WeatherResult:
    city: str
    temp_c: float
    temp_f: float
    temp_k: float

    @classmethod
    def from_celsius(cls, city: str, temp_c: float) -> WeatherResult:
        return cls(
            city=city,
            temp_c=temp_c,
            temp_f=celsius_to_fahrenheit(temp_c),
            temp_k=celsius_to_kelvin(temp_c),
        )

    def as_payload(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "temp_C": self.temp_c,
            "temp_F": self.temp_f,
            "temp_K": self.temp_k,
        }
