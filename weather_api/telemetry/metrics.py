from __future__ import annotations

from prometheus_client import Counter, Histogram

forecast_requests_total = Counter(
    "weather_api_forecast_requests_total",
    "Total forecast requests handled",
)

forecast_records_total = Counter(
    "weather_api_forecast_records_total",
    "Total forecast records generated",
)

long_running_total = Counter(
    "weather_api_long_running_total",
    "Total long running operations by outcome",
    ["outcome"],
)

long_running_region_seconds = Histogram(
    "weather_api_long_running_region_seconds",
    "Duration of each long running span region in seconds",
    ["region"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)
