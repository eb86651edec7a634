"""Shared fixtures: in-memory store, fixed clock, engine and API client."""
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import httpx
import pytest
import pytest_asyncio

from smartqueue.core.config import Settings
from smartqueue.engine import QueueEngine
from smartqueue.services.insights import InsightsService
from smartqueue.services.payment import PaymentGateway
from smartqueue.store.memory import InMemoryRecordStore

TZ = ZoneInfo("Asia/Kolkata")


class FixedClock:
    """Manually advanced clock; every call returns the current instant."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, moment: datetime) -> None:
        self.now = moment


def local(hour: int, minute: int = 0, day: int = 19) -> datetime:
    return datetime(2026, 10, day, hour, minute, tzinfo=TZ)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, TIMEZONE="Asia/Kolkata", GEMINI_API_KEY="", RAZORPAY_KEY_ID="rzp_test")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(local(10, 30))


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def engine(store, settings, clock) -> QueueEngine:
    return QueueEngine(store, settings=settings, clock=clock, tz=TZ)


@pytest.fixture
def payment_handler():
    """Replace .handler in a test to change what the fake gateway returns."""
    class Handler:
        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.handler = lambda request: httpx.Response(
                200,
                json={"id": "order_123", "amount": 5000, "currency": "INR",
                      "receipt": "r-1", "status": "created"},
            )

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self.handler(request)

    return Handler()


@pytest_asyncio.fixture
async def client(engine, settings, payment_handler):
    from smartqueue.main import app

    app.state.engine = engine
    app.state.payments = PaymentGateway(settings, transport=httpx.MockTransport(payment_handler))
    app.state.insights = InsightsService(settings)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c
