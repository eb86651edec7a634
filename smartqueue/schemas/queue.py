"""
SmartQueue — Pydantic schemas for canteens, tokens and history
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    WAITING = "WAITING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class QueueType(str, Enum):
    CAMPUS = "CAMPUS"  # physical pickup queue, token shown at the counter
    ONLINE = "ONLINE"  # virtual queue, paid remotely


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


ACTIVE_STATUSES = (OrderStatus.WAITING, OrderStatus.READY)
TERMINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class MenuItem(BaseModel):
    id: str
    name: str


class Canteen(BaseModel):
    id: str
    name: str = Field(..., min_length=1, max_length=255)
    campus: str = Field(..., min_length=1, max_length=255)
    theme_color: str


class Token(BaseModel):
    id: str
    canteen_id: str
    coupon_code: str = ""
    token_number: str
    food_item: str
    status: OrderStatus = OrderStatus.WAITING
    queue_type: QueueType = QueueType.CAMPUS
    timestamp: datetime
    estimated_wait_time_minutes: int
    completed_at: datetime | None = None
    ai_reasoning: str | None = None
    # online orders only
    payment_id: str | None = None
    payment_status: PaymentStatus | None = None
    user_email: str | None = None
    user_phone: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class HistoryEntry(BaseModel):
    """Append-only prep-time fact, written once when a token completes."""
    id: str
    food_item: str
    prep_time_minutes: int
    hour: int = Field(..., ge=0, le=23)
    timestamp: datetime


class QueueStats(BaseModel):
    total_orders_today: int
    average_wait_time: int  # minutes
    peak_hour: str
    active_queue_length: int


class HourlyTraffic(BaseModel):
    hour: int
    label: str
    count: int


class OrderSummaryItem(BaseModel):
    food_item: str
    count: int
    total_prep_time: int  # minutes
