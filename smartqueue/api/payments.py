"""
SmartQueue — Payment order proxy

Creates the gateway order the checkout widget opens. Keeps the gateway
secret server-side; the browser only ever sees the order id.
"""
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from smartqueue.api.deps import get_payments
from smartqueue.services.payment import PaymentGateway, PaymentGatewayError, PaymentOrder

router = APIRouter(prefix="/api", tags=["payments"])


class CreateOrderRequest(BaseModel):
    amount: int | None = None  # minor units (paise)
    currency: str | None = None
    receipt: str | None = None
    notes: dict[str, Any] | None = None


@router.post("/create-order", response_model=PaymentOrder)
async def create_order(payload: CreateOrderRequest, payments: PaymentGateway = Depends(get_payments)):
    try:
        return await payments.create_order(payload.amount, payload.currency, payload.receipt, payload.notes)
    except PaymentGatewayError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
