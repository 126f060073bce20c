from datetime import datetime, timezone
from fastapi import APIRouter

from prime_hub.api.dependencies import SettingsDep, get_app_state
from prime_hub.api.schemas import HealthResponse, DetailedHealthResponse


router = APIRouter(tags=["Health"])


@router.get("/")
async def root():
    return {"message": "Welcome to Prime Hub Gateway"}


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/health/ready", response_model=DetailedHealthResponse)
async def readiness_check(settings: SettingsDep):
    state = get_app_state()
    components = {}

    db_ready = state.db is not None
    components["database"] = {
        "status": "healthy" if db_ready else "unhealthy",
        "configured": db_ready,
        "connected": db_ready and state.db.is_connected,
    }

    zendesk_ready = state.zendesk is not None and settings.zendesk.has_credentials
    components["zendesk"] = {
        "status": "healthy" if zendesk_ready else "unhealthy",
        "credentials_configured": settings.zendesk.has_credentials,
    }

    metabase_ready = bool(settings.metabase.embed_secret)
    components["metabase"] = {
        "status": "healthy" if metabase_ready else "unhealthy",
        "secret_configured": metabase_ready,
    }

    all_healthy = all(c["status"] == "healthy" for c in components.values())

    return DetailedHealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
        components=components,
    )


@router.get("/health/live")
async def liveness_check():
    return {"status": "alive"}
