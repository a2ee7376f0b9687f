"""Redesign, analysis and style catalog endpoints.

Thin transport layer: parse the body, hand the bearer token and request
to the orchestrator, serialize the result. Failures are typed
``RoomReviveError`` exceptions rendered by the handlers in ``main.py``.
"""

from fastapi import APIRouter, Depends

from roomrevive.api.deps import Services, get_services, get_token
from roomrevive.handlers.prompts import STYLE_OPTIONS
from roomrevive.models.contracts import (
    AnalyzeRoomRequest,
    AnalyzeRoomResult,
    RedesignRequest,
    RedesignResult,
    StyleOption,
)

router = APIRouter(tags=["redesign"])


@router.get("/styles", response_model=list[StyleOption], response_model_by_alias=True)
async def list_styles() -> list[StyleOption]:
    """The 13 design styles; premium ones are flagged for the client's paywall."""
    return list(STYLE_OPTIONS)


@router.post("/redesign", response_model=RedesignResult, response_model_by_alias=True)
async def redesign_room(
    body: RedesignRequest,
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> RedesignResult:
    return await services.redesign.redesign(token, body)


@router.post("/analyze", response_model=AnalyzeRoomResult, response_model_by_alias=True)
async def analyze_room(
    body: AnalyzeRoomRequest,
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> AnalyzeRoomResult:
    return await services.analysis.analyze(token, body)
