"""
Metabase Embed Routes.

Issues signed iframe URLs for the caller's own school dashboards.
"""

import logging
from fastapi import APIRouter

from prime_hub.api.dependencies import CurrentCallerDep, EmbedIssuerDep
from prime_hub.api.schemas import EmbedTokenRequest
from prime_hub.core.tickets import DEGRADED_MESSAGES, DegradedReason
from prime_hub.exceptions import TenantScopeError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/metabase-embed-token")
async def metabase_embed_token(
    request: EmbedTokenRequest,
    caller: CurrentCallerDep,
    issuer: EmbedIssuerDep,
):
    """
    Build the iframe URL for one dashboard filtered to one entity.

    Non-admin callers may only embed their own school's entity; a school
    without a ``proesc_id`` gets a degraded body and no token.
    """
    category, entity_id = issuer.validate(request.dashboardType, request.proescId)

    if not caller.is_admin:
        reason = None
        if not caller.school_id:
            reason = DegradedReason.USER_WITHOUT_SCHOOL
        elif not caller.proesc_id:
            reason = DegradedReason.ENTITY_NOT_CONFIGURED
        if reason is not None:
            logger.warning(
                "Embed request without a configured entity",
                extra={
                    "user_id": caller.user_id,
                    "school_id": caller.school_id,
                    "reason": reason.value,
                },
            )
            return {
                "error": reason.value,
                "message": DEGRADED_MESSAGES[reason],
                "iframeUrl": None,
            }
        if caller.proesc_id != entity_id:
            logger.warning(
                "Embed request outside caller's school",
                extra={
                    "user_id": caller.user_id,
                    "school_id": caller.school_id,
                    "requested_entity": entity_id,
                },
            )
            raise TenantScopeError(
                "proescId does not belong to the caller's school",
                details={"dashboard_type": category.value},
            )

    token = issuer.issue(category.value, entity_id)
    return token.to_response()
