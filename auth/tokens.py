"""
auth/tokens.py -- Identity tokens, password hashing, and the auth cookie.

Security design decisions:
  Tokens: python-jose JWT with HS256. Tokens are signed with SECRET_KEY and
       carry the user id (sub), email, role, country, issue time, a random
       token id (jti) and an expiry seven days out. Verification returns None
       on any failure -- the route layer turns that into a 401 and never says
       which check failed.

       The signature segment must be the canonical base64url encoding of the
       decoded HMAC. A 32-byte HMAC encodes to 43 characters whose last one
       carries two unused bits, and a lenient decoder maps several final
       characters onto the same bytes. Without the canonical check, swapping
       the very last character of a token could leave it valid.

       There is no revocation list. A stolen token stays valid until its exp;
       rotating SECRET_KEY invalidates all outstanding tokens at once. jti is
       minted anyway so a denylist can key on it later.

  Passwords: bcrypt directly (no passlib wrapper). The cost factor comes from
       BCRYPT_ROUNDS. bcrypt.checkpw does the comparison in constant time.
       _DUMMY_HASH lets authenticate_user() spend the same bcrypt work for an
       unknown email as for a wrong password, so response time does not reveal
       which emails have accounts.

Verification is pure and local: no database round-trip, no I/O. It runs on
every authenticated request.

Layer rule: no imports from api/, catalog/, orders/ or payments/. Import from
core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import Identity
from auth.rbac import Country, Role
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("foodorder.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "token"

_REQUIRED_CLAIMS = ("sub", "email", "role", "country")
_ROLES = frozenset(r.value for r in Role)
_COUNTRIES = frozenset(c.value for c in Country)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API caps password fields at
    128 characters; longer inputs never reach this function.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A wrong password is a normal False. A malformed stored hash is an
    internal fault and raises ValueError from bcrypt -- it is not turned into
    a quiet "wrong password".
    """
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("foodorder_timing_dummy")


# ---------------------------------------------------------------------------
# Token mint / verify
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, email: str, role: str, country: str, expire_seconds: int = 0) -> str:
    """Mint a signed token for an identity that has just proven its credentials.

    Args:
        user_id:        Database id of the user; stored as the sub claim.
        email:          Login email.
        role:           "admin" | "manager" | "member" at mint time.
        country:        "india" | "america" at mint time.
        expire_seconds: Lifetime override. 0 (default) uses
                        Settings.token_expire_seconds (seven days).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "country": country,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Identity | None:
    """Verify a token and return the Identity it asserts, or None.

    None covers every failure: empty or whitespace input, wrong segment
    count, bad base64 or JSON, signature mismatch, non-canonical signature
    encoding, expiry, missing claims, and a role or country outside the
    closed sets. Callers treat None exactly like "no token presented".
    """
    if not token or not token.strip():
        return None
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
        if not _has_canonical_signature(token):
            return None
        if any(claim not in payload for claim in _REQUIRED_CLAIMS):
            return None
        if payload["role"] not in _ROLES or payload["country"] not in _COUNTRIES:
            return None
        return Identity(
            id=int(payload["sub"]),
            email=str(payload["email"]),
            role=payload["role"],
            country=payload["country"],
        )
    except (JWTError, ValueError, TypeError):
        return None


def _has_canonical_signature(token: str) -> bool:
    signature = token.rsplit(".", 1)[-1].encode("ascii")
    return base64url_encode(base64url_decode(signature)) == signature


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" header value."""
    if not auth_header:
        return None
    parts = auth_header.split(" ")
    if len(parts) == 2 and parts[0] == "Bearer" and parts[1]:
        return parts[1]
    return None


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any credential failure. The two
    failure cases are indistinguishable to the caller.
    """
    user = store.get_by_email(email)
    if user is None or not user.hashed_password:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the token as an httpOnly, same-site cookie on the response.

    max_age matches the token's own expiry so both lapse together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
        path="/",
    )


def clear_auth_cookie(response) -> None:
    """Overwrite the token cookie with an empty value and zero max-age."""
    response.set_cookie(
        COOKIE_NAME,
        value="",
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=0,
        path="/",
    )
