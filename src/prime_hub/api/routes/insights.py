"""
Dashboard Insights Routes.
"""

import logging
from fastapi import APIRouter

from prime_hub.api.dependencies import CurrentCallerDep, InsightsServiceDep
from prime_hub.api.schemas import InsightsRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/prime-metabase-insights")
async def prime_metabase_insights(
    request: InsightsRequest,
    caller: CurrentCallerDep,
    insights: InsightsServiceDep,
):
    """
    Explain the data behind a dashboard card in plain language.
    """
    logger.info(
        "Insights requested",
        extra={
            "user_id": caller.user_id,
            "school_id": caller.school_id,
            "card_id": request.cardId,
            "dashboard_type": request.dashboardType,
        },
    )
    return await insights.explain(
        request.question,
        card_id=request.cardId,
        params=request.params,
        dashboard_url=request.dashboardUrl,
        locale=request.locale,
        dashboard_type=request.dashboardType,
    )
