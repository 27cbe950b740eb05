"""
api/routes/v1/restaurants.py -- Restaurant and menu browsing endpoints.

Routes:
  GET /api/v1/restaurants       -- active restaurants in the caller's scope
  GET /api/v1/restaurants/{id}  -- one restaurant with its available menu

Country scope: the list is narrowed in SQL with get_country_filter(), and
the detail route re-checks can_access_country() on the fetched row. The two
agree by construction, so a restaurant absent from the list is also denied
on direct access.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import MenuItemResponse, RestaurantDetailResponse, RestaurantResponse
from auth.dependencies import forbidden, require_permission
from auth.models import Identity
from auth.rbac import Permission, can_access_country, get_country_filter
from catalog.store import CatalogStore

logger = logging.getLogger("foodorder.api.restaurants")

# Auth policy:
# - GET /api/v1/restaurants:       requires view_restaurants; country filter applied
# - GET /api/v1/restaurants/{id}:  requires view_restaurants + country scope
router = APIRouter()

_require_view = require_permission(Permission.view_restaurants)


@router.get("/restaurants", response_model=list[RestaurantResponse])
def list_restaurants(
    request: Request,
    identity: Identity = Depends(_require_view),
) -> list[RestaurantResponse]:
    """List active restaurants the caller may see, best rated first."""
    catalog: CatalogStore = request.app.state.catalog
    restaurants = catalog.list_restaurants(get_country_filter(identity))
    return [RestaurantResponse.from_restaurant(r) for r in restaurants]


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantDetailResponse)
def get_restaurant(
    request: Request,
    restaurant_id: int,
    identity: Identity = Depends(_require_view),
) -> RestaurantDetailResponse:
    """Return a restaurant and its available menu items.

    404 for a missing or inactive restaurant, 403 for one in another country.
    """
    catalog: CatalogStore = request.app.state.catalog
    restaurant = catalog.get_restaurant(restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Restaurant not found."},
        )
    if not can_access_country(identity, restaurant.country):
        logger.info("Denied restaurant %s to user %s (country=%s)", restaurant_id, identity.id, identity.country)
        raise forbidden("You do not have access to restaurants in this country.")
    return RestaurantDetailResponse(
        restaurant=RestaurantResponse.from_restaurant(restaurant),
        menu_items=[MenuItemResponse.from_menu_item(m) for m in catalog.list_menu_items(restaurant_id)],
    )
