"""
SmartQueue — FastAPI dependencies
"""
from fastapi import HTTPException, Request, status

from smartqueue.engine import QueueEngine
from smartqueue.engine.menu import MENU_BY_ID
from smartqueue.schemas.queue import Canteen
from smartqueue.services.insights import InsightsService
from smartqueue.services.payment import PaymentGateway


def get_engine(request: Request) -> QueueEngine:
    return request.app.state.engine


def get_payments(request: Request) -> PaymentGateway:
    return request.app.state.payments


def get_insights(request: Request) -> InsightsService:
    return request.app.state.insights


async def require_canteen(engine: QueueEngine, canteen_id: str) -> Canteen:
    canteen = await engine.canteens.get(canteen_id)
    if canteen is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Canteen not found.")
    return canteen


def require_menu_item(food_item: str) -> None:
    if food_item not in MENU_BY_ID:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown food item '{food_item}'.",
        )


def require_admin_for(request: Request, canteen_id: str) -> dict:
    """The admin token must have been issued for this canteen."""
    claims = getattr(request.state, "admin", None)
    if not claims or claims.get("canteen_id") != canteen_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not an admin of this canteen.")
    return claims
