from __future__ import annotations

import datetime as dt
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

Summary = Literal[
    "Freezing",
    "Bracing",
    "Chilly",
    "Cool",
    "Mild",
    "Warm",
    "Balmy",
    "Hot",
    "Sweltering",
    "Scorching",
]

SUMMARIES: tuple[str, ...] = get_args(Summary)

MIN_TEMPERATURE_C = -20
MAX_TEMPERATURE_C = 55  # exclusive


class ForecastRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: dt.date
    temperature_c: int = Field(alias="temperatureC", ge=MIN_TEMPERATURE_C, lt=MAX_TEMPERATURE_C)
    summary: Summary
