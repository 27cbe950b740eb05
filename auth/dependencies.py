"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and RBAC.

Token sources are checked in priority order:
  1. "token" cookie -- set by POST /api/v1/auth/login (httpOnly, samesite=lax).
  2. Authorization: Bearer <token> header -- API clients and scripts.

Both converge on an Identity decoded from the token alone. There is no
database read here: the token's role and country are trusted until it
expires. Routes that need the live record (GET /auth/me) read it themselves.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.
require_permission(p) wraps get_current_identity() and raises HTTP 403 when
the identity's role lacks p.

Missing, malformed, tampered and expired tokens all produce the same 401
body, so a caller cannot tell them apart.

Layer rule: may import from fastapi (this module is part of the dependency
injection system). No imports from catalog/, orders/ or payments/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.rbac import Permission, has_permission
from auth.tokens import COOKIE_NAME, decode_access_token, extract_bearer_token

logger = logging.getLogger("foodorder.auth")


def try_get_current_identity(request: Request) -> Identity | None:
    """Authenticate the request via cookie or Bearer header. Never raises.

    The cookie wins when it verifies. A stale or invalid cookie does not block
    a valid Bearer header sent alongside it.
    """
    cookie: str | None = request.cookies.get(COOKIE_NAME)
    if cookie:
        identity = decode_access_token(cookie)
        if identity is not None:
            return identity
    bearer = extract_bearer_token(request.headers.get("Authorization"))
    if not bearer:
        return None
    return decode_access_token(bearer)


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/orders")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise unauthorized()
    return identity


def require_permission(permission: Permission) -> Callable[[Request], Identity]:
    """Build a dependency that requires authentication plus one permission.

    Use as a FastAPI dependency:
        @router.post("/orders")
        def route(identity: Identity = Depends(require_permission(Permission.place_order))): ...
    """

    def dependency(request: Request) -> Identity:
        identity = get_current_identity(request)
        if not has_permission(identity.role, permission):
            logger.info("Denied %s to user %s (role=%s)", permission.value, identity.id, identity.role)
            raise forbidden()
        return identity

    return dependency


def unauthorized() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": "Authentication required."},
    )


def forbidden(message: str = "You do not have permission to perform this action.") -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={"code": "forbidden", "message": message},
    )
