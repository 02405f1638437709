from __future__ import annotations

from fastapi import APIRouter, Depends

from weather_api.api.deps.services import get_forecast_service, get_long_running_service
from weather_api.schemas.weather import ForecastRecord
from weather_api.services.forecast_service import ForecastService
from weather_api.services.long_running_service import LongRunningService

router = APIRouter(tags=["WeatherForecast"])


@router.get("", response_model=list[ForecastRecord], operation_id="GetWeatherForecast")
def get_forecast(service: ForecastService = Depends(get_forecast_service)) -> list[ForecastRecord]:
    return service.generate()


@router.post("", response_model=bool, operation_id="PostLongRunning")
async def post_long_running(service: LongRunningService = Depends(get_long_running_service)) -> bool:
    return await service.run()
