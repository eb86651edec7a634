"""
SmartQueue — Student-facing token routes

Flow:
  campus:  POST /canteens/{id}/tokens        → WAITING token, number A-NNN
  online:  POST /canteens/{id}/online-orders → same, after payment succeeded client-side
  poll:    GET  /canteens/{id}/tokens/{token_id}/position
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from smartqueue.api.deps import get_engine, get_insights, require_canteen, require_menu_item
from smartqueue.core.optimistic_lock import StaleDataError
from smartqueue.engine import QueueEngine
from smartqueue.schemas.queue import OrderStatus, QueueType, Token
from smartqueue.services.insights import EtaPrediction, InsightsService
from smartqueue.store.base import StoreWriteError

router = APIRouter(tags=["tokens"])


class CampusTokenRequest(BaseModel):
    food_item: str = Field(..., examples=["vadapav"])
    coupon_code: str = Field("", max_length=64)


class OnlineOrderRequest(BaseModel):
    food_item: str
    user_email: str = Field(..., min_length=3, max_length=255)
    user_phone: str = Field(..., min_length=5, max_length=32)
    payment_id: str = Field(..., min_length=1, max_length=128)


class PositionResponse(BaseModel):
    token_id: str
    position: int
    status: OrderStatus | None = None


class EstimationRequest(BaseModel):
    minutes: int = Field(..., ge=0, le=600)
    reasoning: str | None = Field(None, max_length=500)


async def _issue(coro) -> Token:
    try:
        return await coro
    except StaleDataError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Queue is busy, token number could not be allocated. Please retry.",
        )
    except StoreWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post("/canteens/{canteen_id}/tokens", response_model=Token, status_code=status.HTTP_201_CREATED)
async def issue_campus_token(canteen_id: str, payload: CampusTokenRequest,
                             engine: QueueEngine = Depends(get_engine)):
    await require_canteen(engine, canteen_id)
    require_menu_item(payload.food_item)
    return await _issue(engine.issue_campus_token(canteen_id, payload.coupon_code, payload.food_item))


@router.post("/canteens/{canteen_id}/online-orders", response_model=Token, status_code=status.HTTP_201_CREATED)
async def issue_online_order(canteen_id: str, payload: OnlineOrderRequest,
                             engine: QueueEngine = Depends(get_engine)):
    """Create the online token for an order whose payment the gateway already confirmed."""
    await require_canteen(engine, canteen_id)
    require_menu_item(payload.food_item)
    return await _issue(engine.issue_online_order(
        canteen_id, payload.food_item, payload.user_email, payload.user_phone, payload.payment_id,
    ))


@router.get("/tokens/{token_id}", response_model=Token)
async def get_token(token_id: str, engine: QueueEngine = Depends(get_engine)):
    token = await engine.queues.get_token(token_id)
    if token is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Token not found.")
    return token


@router.get("/canteens/{canteen_id}/tokens/{token_id}/position", response_model=PositionResponse)
async def get_queue_position(
    canteen_id: str,
    token_id: str,
    queue_type: QueueType | None = Query(None, description="Restrict to CAMPUS or ONLINE"),
    engine: QueueEngine = Depends(get_engine),
):
    """Position 0 means the token is no longer (or never was) waiting here."""
    position = await engine.queue_position(canteen_id, token_id, queue_type)
    token = await engine.queues.get_token(token_id)
    return PositionResponse(token_id=token_id, position=position, status=token.status if token else None)


@router.get("/canteens/{canteen_id}/queue", response_model=list[Token])
async def get_active_queue(
    canteen_id: str,
    queue_type: QueueType | None = Query(None),
    engine: QueueEngine = Depends(get_engine),
):
    return await engine.active_queue(canteen_id, queue_type)


@router.patch("/tokens/{token_id}/estimation", response_model=Token)
async def update_estimation(token_id: str, payload: EstimationRequest, engine: QueueEngine = Depends(get_engine)):
    token = await engine.lifecycle.update_estimation(token_id, payload.minutes, payload.reasoning)
    if token is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Token not found.")
    return token


@router.get("/canteens/{canteen_id}/eta", response_model=EtaPrediction)
async def predict_eta(
    canteen_id: str,
    food_item: str = Query(...),
    queue_type: QueueType | None = Query(None),
    engine: QueueEngine = Depends(get_engine),
    insights: InsightsService = Depends(get_insights),
):
    """Wait estimate for a new order, from queue length and recorded prep times."""
    await require_canteen(engine, canteen_id)
    require_menu_item(food_item)
    queue = await engine.active_queue(canteen_id, queue_type)
    waiting = sum(1 for t in queue if t.status == OrderStatus.WAITING)
    history = await engine.statistics.history_for_food(food_item)
    return await insights.predict_eta(food_item, waiting, history)
