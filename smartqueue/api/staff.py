"""
SmartQueue — Staff counter routes (order lifecycle)
"""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from smartqueue.api.deps import get_engine, get_insights
from smartqueue.engine import QueueEngine
from smartqueue.engine.clock import minutes_between, round_half_up
from smartqueue.schemas.queue import OrderStatus, Token
from smartqueue.services.insights import CompletionAnalysis, InsightsService

router = APIRouter(prefix="/tokens", tags=["staff"])


class CompleteRequest(BaseModel):
    reasoning: str | None = Field(None, max_length=500)
    record_history: bool = True


def _found(token: Token | None) -> Token:
    if token is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Token not found.")
    return token


@router.post("/{token_id}/ready", response_model=Token)
async def mark_ready(token_id: str, engine: QueueEngine = Depends(get_engine)):
    return _found(await engine.mark_ready(token_id))


@router.post("/{token_id}/complete", response_model=Token)
async def complete(token_id: str, payload: CompleteRequest | None = None,
                   engine: QueueEngine = Depends(get_engine)):
    """
    Complete an order. By default the prep time is also appended to the
    history log; pass record_history=false for a plain completion.
    """
    payload = payload or CompleteRequest()
    if payload.record_history:
        return _found(await engine.complete_with_annotation(token_id, payload.reasoning))
    return _found(await engine.complete(token_id))


@router.post("/{token_id}/cancel", response_model=Token)
async def cancel(token_id: str, engine: QueueEngine = Depends(get_engine)):
    return _found(await engine.lifecycle.cancel(token_id))


@router.get("/{token_id}/completion-check", response_model=CompletionAnalysis)
async def completion_check(
    token_id: str,
    engine: QueueEngine = Depends(get_engine),
    insights: InsightsService = Depends(get_insights),
):
    """Ask whether an order has been in the kitchen long enough to close out."""
    token = _found(await engine.queues.get_token(token_id))
    actual = round_half_up(minutes_between(token.timestamp, engine.clock()))
    return await insights.analyze_completion(
        token.food_item,
        token.estimated_wait_time_minutes,
        actual,
        token.status == OrderStatus.READY,
    )
