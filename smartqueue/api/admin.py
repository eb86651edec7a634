"""
SmartQueue — Admin dashboard routes

All routes except /admin/login require the Bearer token issued by
/admin/login (enforced by AdminAuthMiddleware) and are limited to the
canteen the token was issued for.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from smartqueue.api.deps import get_engine, get_insights, require_admin_for, require_canteen
from smartqueue.core.config import get_settings
from smartqueue.core.security import check_admin_password, create_access_token
from smartqueue.engine import QueueEngine
from smartqueue.schemas.queue import HistoryEntry, HourlyTraffic, OrderSummaryItem, QueueStats
from smartqueue.services.demo import seed_demo_data
from smartqueue.services.insights import InsightsService

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


class AdminLoginRequest(BaseModel):
    canteen_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    canteen_id: str
    canteen_name: str


class TextResponse(BaseModel):
    canteen_id: str
    text: str


class DemoDataRequest(BaseModel):
    count: int = Field(400, ge=1, le=5000)


@router.post("/login", response_model=AdminTokenResponse)
async def login(payload: AdminLoginRequest, engine: QueueEngine = Depends(get_engine)):
    canteen = await engine.canteens.get(payload.canteen_id)
    if canteen is None or not check_admin_password(canteen.id, payload.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid canteen or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = create_access_token({"sub": canteen.id, "canteen_id": canteen.id, "is_admin": True})
    return AdminTokenResponse(
        access_token=token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        canteen_id=canteen.id,
        canteen_name=canteen.name,
    )


@router.get("/canteens/{canteen_id}/stats", response_model=QueueStats)
async def get_stats(canteen_id: str, request: Request, engine: QueueEngine = Depends(get_engine)):
    require_admin_for(request, canteen_id)
    return await engine.stats(canteen_id)


@router.get("/canteens/{canteen_id}/traffic", response_model=list[HourlyTraffic])
async def get_hourly_traffic(canteen_id: str, request: Request, engine: QueueEngine = Depends(get_engine)):
    require_admin_for(request, canteen_id)
    return await engine.hourly_traffic(canteen_id)


@router.get("/canteens/{canteen_id}/summary", response_model=list[OrderSummaryItem])
async def get_order_summary(canteen_id: str, request: Request, engine: QueueEngine = Depends(get_engine)):
    require_admin_for(request, canteen_id)
    return await engine.todays_order_summary(canteen_id)


@router.get("/canteens/{canteen_id}/insights", response_model=TextResponse)
async def get_insights_text(
    canteen_id: str,
    request: Request,
    engine: QueueEngine = Depends(get_engine),
    insights: InsightsService = Depends(get_insights),
):
    require_admin_for(request, canteen_id)
    stats = await engine.stats(canteen_id)
    return TextResponse(canteen_id=canteen_id, text=await insights.queue_insights(stats))


@router.get("/canteens/{canteen_id}/report", response_model=TextResponse)
async def get_report(
    canteen_id: str,
    request: Request,
    engine: QueueEngine = Depends(get_engine),
    insights: InsightsService = Depends(get_insights),
):
    require_admin_for(request, canteen_id)
    canteen = await require_canteen(engine, canteen_id)
    stats = await engine.stats(canteen_id)
    summary = await engine.todays_order_summary(canteen_id)
    report = await insights.detailed_report(stats, canteen.name, summary)
    return TextResponse(canteen_id=canteen_id, text=report)


@router.get("/history", response_model=list[HistoryEntry])
async def get_history(
    food_item: str | None = Query(None),
    engine: QueueEngine = Depends(get_engine),
):
    if food_item:
        return await engine.statistics.history_for_food(food_item)
    return await engine.statistics.all_history()


@router.post("/canteens/{canteen_id}/demo-data", status_code=status.HTTP_201_CREATED)
async def create_demo_data(
    canteen_id: str,
    request: Request,
    payload: DemoDataRequest | None = None,
    engine: QueueEngine = Depends(get_engine),
):
    require_admin_for(request, canteen_id)
    await require_canteen(engine, canteen_id)
    count = await seed_demo_data(engine, canteen_id, (payload or DemoDataRequest()).count)
    return {"canteen_id": canteen_id, "created": count}
