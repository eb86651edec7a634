"""
SmartQueue — Admin JWT middleware
Validates the Bearer token on /admin routes; returns 401 on failure.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from jose import JWTError

from smartqueue.core.security import decode_token

ADMIN_PREFIX = "/admin"
PUBLIC_ADMIN_PATHS = {"/admin/login", "/admin/login/"}


class AdminAuthMiddleware(BaseHTTPMiddleware):
    """
    Guards everything under /admin except the login route.
    Attaches decoded claims to request.state.admin on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if not path.startswith(ADMIN_PREFIX) or path in PUBLIC_ADMIN_PATHS:
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=401,
                content={"detail": "Missing or invalid Authorization header. Expected: Bearer <token>"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header.split(" ", 1)[1]
        try:
            claims = decode_token(token)
        except JWTError as exc:
            return JSONResponse(
                status_code=401,
                content={"detail": f"Invalid or expired JWT: {str(exc)}"},
                headers={"WWW-Authenticate": "Bearer"},
            )
        if claims.get("type") != "access" or not claims.get("is_admin"):
            return JSONResponse(status_code=401, content={"detail": "Admin token required."})

        request.state.admin = claims
        return await call_next(request)
