"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these classes only own the domain shape.

Role and country are kept as plain strings here ("admin", "india", ...). The
closed sets they are drawn from live in auth/rbac.py.

Layer rule: no imports from api/, catalog/, orders/ or payments/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A stored account.

    email is stored lower-cased and is the login identifier. hashed_password
    is a bcrypt hash and never leaves the store/auth layer -- API response
    models omit it, which is the "password-stripped" view of a user.
    """

    email: str
    name: str
    role: str  # "admin" | "manager" | "member"
    country: str  # "india" | "america"
    hashed_password: str = ""
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The authenticated subject as asserted by a verified token.

    Role and country are whatever they were when the token was minted. They
    are trusted until the token expires; nothing re-validates them against
    the users table on each request.
    """

    id: int
    email: str
    role: str
    country: str

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        if user.id is None:
            raise ValueError("Cannot build an Identity from an unsaved user.")
        return cls(id=user.id, email=user.email, role=user.role, country=user.country)
