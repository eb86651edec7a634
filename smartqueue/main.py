"""
SmartQueue — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from smartqueue.api import admin, canteens, events, health, payments, staff, tokens
from smartqueue.core.config import get_settings
from smartqueue.core.redis_client import close_redis
from smartqueue.engine import QueueEngine
from smartqueue.middleware.auth import AdminAuthMiddleware
from smartqueue.services.insights import InsightsService
from smartqueue.services.payment import PaymentGateway
from smartqueue.store import build_store

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = build_store(settings)
    await store.start()
    app.state.engine = QueueEngine(store, settings)
    app.state.payments = PaymentGateway(settings)
    app.state.insights = InsightsService(settings)
    logger.info("SmartQueue started with %s store", settings.STORE_BACKEND)
    yield
    await store.close()
    await close_redis()


app = FastAPI(
    title="SmartQueue",
    description="Campus canteen tokens, pickup queues and traffic statistics.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(AdminAuthMiddleware)

# Added last so CORS wraps the admin check
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(canteens.router)
app.include_router(tokens.router)
app.include_router(staff.router)
app.include_router(admin.router)
app.include_router(payments.router)
app.include_router(events.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
