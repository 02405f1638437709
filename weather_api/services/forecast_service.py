from __future__ import annotations

import datetime as dt
import random

from weather_api.core.config import Settings, get_settings
from weather_api.core.logging import get_logger
from weather_api.schemas.weather import MAX_TEMPERATURE_C, MIN_TEMPERATURE_C, SUMMARIES, ForecastRecord
from weather_api.telemetry.metrics import forecast_records_total, forecast_requests_total


class ForecastService:
    def __init__(self, settings: Settings | None = None, rng: random.Random | None = None) -> None:
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)
        self.rng = rng or random.Random()

    def generate(self, days: int | None = None, *, today: dt.date | None = None) -> list[ForecastRecord]:
        count = days if days is not None else self.settings.forecast_days
        if not 1 <= count <= 5:
            raise ValueError(f"days must be between 1 and 5, got {count}")
        start = today or dt.date.today()
        records = [
            ForecastRecord(
                date=start + dt.timedelta(days=index),
                temperature_c=self.rng.randrange(MIN_TEMPERATURE_C, MAX_TEMPERATURE_C),
                summary=self.rng.choice(SUMMARIES),
            )
            for index in range(1, count + 1)
        ]
        forecast_requests_total.inc()
        forecast_records_total.inc(len(records))
        self.logger.info("forecast.generated", extra={"event": "forecast_generated", "count": len(records)})
        return records
