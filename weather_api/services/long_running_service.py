from __future__ import annotations

import asyncio
import time

import httpx

from weather_api.core.config import Settings, get_settings
from weather_api.core.logging import get_logger
from weather_api.core.telemetry import Telemetry
from weather_api.telemetry.metrics import long_running_region_seconds, long_running_total
from weather_api.telemetry.spans import span

DOWNSTREAM_REGION = "GetLongRunning"
FAULT_REGION = "Exception"
FAULT_MESSAGE = "Exception"


class SimulatedFaultError(Exception):
    """Raised on every call by the second region of the long running operation."""


class LongRunningService:
    """Runs the two traced regions behind ``POST /WeatherForecast``.

    The first region calls the downstream endpoint and waits for the configured
    delay; the second one raises :class:`SimulatedFaultError`. Nothing is caught
    here: both downstream failures and the fault reach the application's
    exception handlers after their span has been closed and marked as failed.
    """

    def __init__(self, telemetry: Telemetry, http_client: httpx.AsyncClient, settings: Settings | None = None) -> None:
        self.telemetry = telemetry
        self.http_client = http_client
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

    async def run(self) -> bool:
        await self._call_downstream()
        self._raise_fault()
        # Unreachable: the fault region always raises.
        return True

    async def _call_downstream(self) -> None:
        started = time.perf_counter()
        try:
            with span(self.telemetry.tracer, DOWNSTREAM_REGION) as region:
                self.logger.info("long_running.begin", extra={"event": "long_running_begin"})
                region.add_baggage("test", "test")
                region.add_event("google")
                response = await self.http_client.get(self.settings.long_running_target_url)
                self.logger.info(
                    "long_running.downstream_complete",
                    extra={
                        "event": "long_running_downstream_complete",
                        "status_code": response.status_code,
                        "elapsed_ms": int((time.perf_counter() - started) * 1000),
                    },
                )
                await asyncio.sleep(self.settings.long_running_delay_seconds)
        except httpx.HTTPError as exc:
            long_running_total.labels(outcome="downstream_error").inc()
            self.logger.warning(
                "long_running.downstream_failed",
                extra={"event": "long_running_downstream_failed", "error": str(exc)},
            )
            raise
        finally:
            long_running_region_seconds.labels(region=DOWNSTREAM_REGION).observe(time.perf_counter() - started)

    def _raise_fault(self) -> None:
        started = time.perf_counter()
        try:
            with span(self.telemetry.tracer, FAULT_REGION):
                raise SimulatedFaultError(FAULT_MESSAGE)
        except SimulatedFaultError:
            long_running_total.labels(outcome="fault").inc()
            raise
        finally:
            long_running_region_seconds.labels(region=FAULT_REGION).observe(time.perf_counter() - started)
