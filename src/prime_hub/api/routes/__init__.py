from fastapi import APIRouter

from .embed import router as embed_router
from .tickets import router as tickets_router
from .diagnostics import router as diagnostics_router
from .insights import router as insights_router
from .health import router as health_router
from prime_hub.api.schemas import ErrorResponse

health_router_root = health_router

functions_router = APIRouter(
    prefix="/functions",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

functions_router.include_router(embed_router, tags=["Metabase"])
functions_router.include_router(tickets_router, tags=["Zendesk"])
functions_router.include_router(diagnostics_router, tags=["Zendesk"])
functions_router.include_router(insights_router, tags=["Insights"])
