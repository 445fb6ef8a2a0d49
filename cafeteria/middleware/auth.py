"""
Cafeteria — JWT Authentication Middleware

Till and kitchen screens are public. Admin surfaces (users, reports and any
catalog write) need a Bearer token with the admin role: 401 without a valid
token, 403 for other roles.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from cafeteria.core.security import decode_token
from cafeteria.models.user import UserRole

ADMIN_PATH_PREFIXES = ("/api/users", "/api/reports")
CATALOG_PATH_PREFIX = "/api/products"
READ_METHODS = {"GET", "HEAD", "OPTIONS"}


def requires_admin(method: str, path: str) -> bool:
    if path.startswith(ADMIN_PATH_PREFIXES):
        return method != "OPTIONS"
    if path.startswith(CATALOG_PATH_PREFIX):
        return method not in READ_METHODS
    return False


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Validates the Bearer token on admin routes.
    Attaches decoded claims to request.state.user on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if not requires_admin(request.method, request.url.path):
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

        if claims.get("role") != UserRole.ADMIN.value:
            return JSONResponse(status_code=403, content={"detail": "Admin role required."})

        request.state.user = claims
        return await call_next(request)
