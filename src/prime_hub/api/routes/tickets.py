"""
Zendesk Ticket Routes.
"""

from fastapi import APIRouter, Request

from prime_hub.api.dependencies import CurrentCallerDep, TicketGatewayDep
from prime_hub.api.schemas import TicketRequest


router = APIRouter()


@router.post("/zendesk-integration")
async def zendesk_integration(
    request: TicketRequest,
    http_request: Request,
    caller: CurrentCallerDep,
    gateway: TicketGatewayDep,
):
    """
    Relay one ticket action to Zendesk within the caller's organization.

    Callers whose school has no Zendesk organization get a 200 body with
    an ``error`` field and no tickets.
    """
    http_request.state.caller = caller
    http_request.state.action = request.action
    return await gateway.handle(caller, request.action, request.model_dump())
