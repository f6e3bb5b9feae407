"""JWT authentication middleware.

Verifies the Bearer token on every request outside the public paths and
attaches the principal to ``request.state.user``.
"""

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.jwt import jwt_verifier
from app.schemas.auth import CurrentUser
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Paths that don't require authentication
EXCLUDED_PATHS = {
    "/",
    "/docs",
    "/docs/",
    "/redoc",
    "/openapi.json",
}
EXCLUDED_PREFIXES = ("/health", "/docs/")


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware for JWT authentication."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if path in EXCLUDED_PATHS or path.startswith(EXCLUDED_PREFIXES):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            LOGGER.warning(f"Missing authentication for {path}")
            return _unauthorized("Authentication required")

        scheme, _, token = auth_header.partition(" ")
        if scheme != "Bearer" or not token:
            LOGGER.warning(f"Invalid Authorization header format for {path}")
            return _unauthorized("Invalid authentication scheme. Use Bearer token.")

        try:
            claims = await jwt_verifier.verify_token(token)
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token for {path}: {e}")
            return _unauthorized("Invalid authentication token")

        request.state.user = CurrentUser.from_claims(claims)
        LOGGER.debug(f"Authenticated user {claims.sub} via middleware")
        return await call_next(request)
