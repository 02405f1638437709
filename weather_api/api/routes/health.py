from __future__ import annotations

from fastapi import APIRouter, Depends

from weather_api.api.deps.services import get_app_settings
from weather_api.core.config import Settings

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name}
