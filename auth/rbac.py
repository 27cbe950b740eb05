"""
auth/rbac.py -- Role-permission matrix and country-scope decisions.

Every sensitive action in the API is gated by a function in this module.
Route handlers re-check on the server even when a client already hid the
corresponding control -- the client carries no security weight.

Two orthogonal dimensions:
  Role     -- decides WHICH actions are allowed (ROLE_PERMISSIONS).
  Country  -- decides WHOSE data an identity may see or touch. Admins are
              exempt; everybody else is confined to their own country.

Invariants:
  ROLE_PERMISSIONS is total over Role and read-only. It is a MappingProxyType
  over frozensets, built once at import, so there is no runtime path that can
  grant a role a new permission.

  can_access_country() and get_country_filter() are two renderings of the
  same rule. A resource passes the boolean check iff it matches the filter.
  Change one, change the other.

  Nothing here raises for a denial. Unknown role or permission strings are
  simply denied.

Layer rule: no imports from api/, catalog/, orders/ or payments/.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol


class Role(str, Enum):
    admin = "admin"
    manager = "manager"
    member = "member"


class Country(str, Enum):
    india = "india"
    america = "america"


class Permission(str, Enum):
    view_restaurants = "view_restaurants"
    create_order = "create_order"
    place_order = "place_order"
    cancel_order = "cancel_order"
    manage_payments = "manage_payments"


class Subject(Protocol):
    """Anything carrying a role and a country -- an Identity or a User."""

    role: str
    country: str


ROLE_PERMISSIONS: Mapping[Role, frozenset[Permission]] = MappingProxyType(
    {
        Role.admin: frozenset(Permission),
        Role.manager: frozenset(
            {
                Permission.view_restaurants,
                Permission.create_order,
                Permission.place_order,
                Permission.cancel_order,
            }
        ),
        Role.member: frozenset(
            {
                Permission.view_restaurants,
                Permission.create_order,
            }
        ),
    }
)


def has_permission(role: str, permission: str) -> bool:
    """Return True if the role's entry in ROLE_PERMISSIONS contains permission."""
    try:
        granted = ROLE_PERMISSIONS[Role(role)]
        return Permission(permission) in granted
    except ValueError:
        return False


def can_perform_action(subject: Subject, permission: str) -> bool:
    return has_permission(subject.role, permission)


def can_access_country(subject: Subject, target_country: str) -> bool:
    """Admins see every country; everyone else only their own."""
    if subject.role == Role.admin:
        return True
    return subject.country == target_country


def get_country_filter(subject: Subject) -> dict[str, str]:
    """Return the query predicate matching exactly what can_access_country() allows.

    {} for admins (no restriction), {"country": <own country>} otherwise. The
    stores apply it as column-equality WHERE clauses (core.db.apply_filters).
    """
    if subject.role == Role.admin:
        return {}
    return {"country": subject.country}


def can_cancel_order(subject: Subject, order_country: str) -> bool:
    """Both conjuncts are required: the cancel_order permission AND country scope.

    A manager in the wrong country is denied; a member in the right country
    is denied. The order's own status is checked separately by the caller
    (orders.store.is_cancellable) -- the two conditions are independent.
    """
    return has_permission(subject.role, Permission.cancel_order) and can_access_country(subject, order_country)
