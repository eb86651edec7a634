"""
SmartQueue — Canteen registry routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from smartqueue.api.deps import get_engine, require_canteen
from smartqueue.engine import QueueEngine
from smartqueue.engine.menu import MENU_ITEMS
from smartqueue.schemas.queue import Canteen, MenuItem
from smartqueue.store.base import StoreWriteError

router = APIRouter(tags=["canteens"])


class CanteenCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["VITFC"])
    campus: str = Field(..., min_length=1, max_length=255)


@router.get("/menu", response_model=list[MenuItem])
async def get_menu():
    return MENU_ITEMS


@router.post("/canteens", response_model=Canteen, status_code=status.HTTP_201_CREATED)
async def register_canteen(payload: CanteenCreateRequest, engine: QueueEngine = Depends(get_engine)):
    try:
        return await engine.canteens.register(payload.name, payload.campus)
    except StoreWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.put("/canteens/{canteen_id}", response_model=Canteen)
async def save_canteen(canteen_id: str, payload: Canteen, engine: QueueEngine = Depends(get_engine)):
    """Upsert a canteen as-is (e.g. decoded from a scanned QR code)."""
    if payload.id != canteen_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Canteen id mismatch.")
    try:
        return await engine.canteens.save(payload)
    except StoreWriteError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("/canteens", response_model=list[Canteen])
async def list_canteens(engine: QueueEngine = Depends(get_engine)):
    return await engine.canteens.list_all()


@router.get("/canteens/{canteen_id}", response_model=Canteen)
async def get_canteen(canteen_id: str, engine: QueueEngine = Depends(get_engine)):
    return await require_canteen(engine, canteen_id)
