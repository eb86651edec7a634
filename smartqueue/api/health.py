"""
SmartQueue — Health endpoint
"""
import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from smartqueue.core.config import get_settings

settings = get_settings()
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    deps: dict[str, str] = {}
    healthy = True

    try:
        store = request.app.state.engine.store
        await asyncio.wait_for(store.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps[f"store:{settings.STORE_BACKEND}"] = "ok"
    except Exception as e:
        deps[f"store:{settings.STORE_BACKEND}"] = f"error: {str(e)[:100]}"
        healthy = False

    deps["payment_gateway"] = "configured" if settings.RAZORPAY_KEY_ID else "not configured"
    deps["ai_insights"] = "configured" if settings.GEMINI_API_KEY else "fallback"
    deps["remote_mirror"] = "configured" if settings.REMOTE_DB_URL else "disabled"

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )
