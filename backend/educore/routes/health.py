from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..config import Settings
from ..middleware import get_app_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }
