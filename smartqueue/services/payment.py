"""
SmartQueue — Payment gateway client (Razorpay order creation)

The engine never initiates or verifies payment; this client only creates
the gateway order the checkout widget needs. Online tokens are issued
later with the payment id the widget returns.
"""
import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel

from smartqueue.core.config import Settings

logger = logging.getLogger(__name__)


class PaymentOrder(BaseModel):
    id: str
    amount: int  # minor units (paise)
    currency: str
    receipt: str | None = None
    status: str


class PaymentGatewayError(Exception):

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PaymentGateway:

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str | None = None,
        notes: dict[str, Any] | None = None,
    ) -> PaymentOrder:
        if not amount or not currency:
            raise PaymentGatewayError("Amount and currency are required", status_code=400)

        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt or f"receipt_{int(time.time() * 1000)}",
            "notes": notes or {},
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.HTTP_TIMEOUT_SECONDS,
                auth=(self._settings.RAZORPAY_KEY_ID, self._settings.RAZORPAY_KEY_SECRET),
                transport=self._transport,
            ) as client:
                r = await client.post(f"{self._settings.RAZORPAY_API_URL}/orders", json=payload)
        except httpx.TimeoutException:
            raise PaymentGatewayError("Payment gateway did not respond in time. Please retry.", status_code=504)
        except httpx.RequestError as exc:
            logger.error("Payment gateway unreachable: %s", exc)
            raise PaymentGatewayError(f"Payment gateway unreachable: {exc}", status_code=503)

        try:
            data = r.json()
        except ValueError:
            data = {}

        if not r.is_success:
            logger.error("Payment gateway error %s: %s", r.status_code, data)
            raise PaymentGatewayError(_error_message(data), status_code=r.status_code)

        return PaymentOrder(
            id=data["id"],
            amount=data["amount"],
            currency=data["currency"],
            receipt=data.get("receipt"),
            status=data["status"],
        )


def _error_message(data: dict) -> str:
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("description") or "Failed to create order"
    return error or "Failed to create order"
