from fastapi import APIRouter

from prime_hub.api.dependencies import CurrentCallerDep, DiagnosticsDep
from prime_hub.api.schemas import DiagnosticsResponse


router = APIRouter()


@router.post("/zendesk-diagnostics", response_model=DiagnosticsResponse)
async def zendesk_diagnostics(caller: CurrentCallerDep, diagnostics: DiagnosticsDep):
    return await diagnostics.run(caller)
