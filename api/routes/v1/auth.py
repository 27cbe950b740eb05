"""
api/routes/v1/auth.py -- Login, logout and current-user REST endpoints.

Routes:
  POST /api/v1/auth/login   -- email/password login; sets the token cookie
  POST /api/v1/auth/logout  -- overwrites the cookie with an empty, expired one
  GET  /api/v1/auth/me      -- the live user record for the presented token

Security:
  POST /login is rate-limited per client address (LOGIN_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline.
  Login responses carry Cache-Control: no-store.
  Unknown email and wrong password produce the same 401 "bad_credentials".
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MessageResponse, UserResponse
from auth.dependencies import get_current_identity, unauthorized
from auth.models import Identity
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, set_auth_cookie
from core.config import get_settings

logger = logging.getLogger("foodorder.api.auth")

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/login:   public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout:  public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:      requires auth (get_current_identity)
router = APIRouter()


# The router must register the limiter's wrapper, so @router goes outermost.
# SlowAPIMiddleware skips routes that carry their own @limiter.limit.
@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the token cookie.

    The token is also returned in the body for clients that send it as a
    Bearer header instead.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        logger.info("Failed login for %s", body.email.lower())
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = create_access_token(user.id, user.email, user.role, user.country)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            user=UserResponse.from_user(user),
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    logger.info("User %s logged in (role=%s, country=%s)", user.id, user.role, user.country)
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
def logout() -> JSONResponse:
    """Clear the token cookie. The token itself stays valid until it expires."""
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    clear_auth_cookie(resp)
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, identity: Identity = Depends(get_current_identity)) -> UserResponse:
    """Return the current user as stored now, not as the token described it.

    A token for a user that has since been deleted is answered with 401.
    """
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(identity.id)
    if user is None:
        raise unauthorized()
    return UserResponse.from_user(user)
