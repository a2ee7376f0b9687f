"""Per-user credits and redesign history endpoints."""

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, Response

from roomrevive.api.deps import Services, get_services, get_token
from roomrevive.errors import RoomReviveError
from roomrevive.models.contracts import (
    CreditsResponse,
    RedesignHistoryItem,
    SaveRedesignRequest,
    UpdateFavoriteRequest,
)
from roomrevive.stores.credits import unlocked_features
from roomrevive.stores.history import DEFAULT_LIMIT

logger = structlog.get_logger()

router = APIRouter(tags=["account"])


class HistoryItemNotFoundError(RoomReviveError):
    status_code = 404
    category = "not_found"
    default_message = "Redesign not found"


@router.get("/credits", response_model=CreditsResponse, response_model_by_alias=True)
async def get_credits(
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> CreditsResponse:
    user_id = await services.gate.authenticate(token)
    credits = await services.ledger.get_or_create(user_id)
    return CreditsResponse(credits=credits, features=unlocked_features(credits.tier))


@router.get(
    "/history",
    response_model=list[RedesignHistoryItem],
    response_model_by_alias=True,
)
async def list_history(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    favorites: bool = False,
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> list[RedesignHistoryItem]:
    user_id = await services.gate.authenticate(token)
    return await services.history.list(user_id, limit=limit, favorites_only=favorites)


@router.post(
    "/history",
    status_code=201,
    response_model=RedesignHistoryItem,
    response_model_by_alias=True,
)
async def save_history(
    body: SaveRedesignRequest,
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> RedesignHistoryItem:
    user_id = await services.gate.authenticate(token)
    return await services.history.save(user_id, body)


@router.patch("/history/{item_id}", status_code=204)
async def update_favorite(
    item_id: uuid.UUID,
    body: UpdateFavoriteRequest,
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> Response:
    user_id = await services.gate.authenticate(token)
    if not await services.history.set_favorite(user_id, item_id, body.is_favorite):
        raise HistoryItemNotFoundError()
    return Response(status_code=204)


@router.delete("/history/{item_id}", status_code=204)
async def delete_history(
    item_id: uuid.UUID,
    token: str | None = Depends(get_token),
    services: Services = Depends(get_services),
) -> Response:
    user_id = await services.gate.authenticate(token)
    if not await services.history.delete(user_id, item_id):
        raise HistoryItemNotFoundError()
    logger.info("history_deleted", user_id=user_id, history_id=str(item_id))
    return Response(status_code=204)
