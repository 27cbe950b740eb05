"""
catalog/store.py -- SQLAlchemy-backed persistence for restaurants and menu items.

Pattern: Repository + Data Mapper, like the other stores. Route handlers
never touch SQL directly.

Country scope: list_restaurants() takes the dict produced by
auth.rbac.get_country_filter() and applies it as WHERE clauses. The store
does not know about roles; it only knows how to narrow by column.

Usage:
    store = CatalogStore()
    rid = store.create_restaurant(Restaurant(name="Spice Garden", cuisine="North Indian", country="india"))
    store.create_menu_item(MenuItem(restaurant_id=rid, name="Dal", price=250, category="Mains"))
    store.list_restaurants({"country": "india"})
    store.close()
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, Column, Float, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from catalog.models import MenuItem, Restaurant
from core.db import apply_filters, default_db_url, make_engine, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_restaurants = Table(
    "restaurants",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("cuisine", String(100), nullable=False),
    Column("country", String(20), nullable=False, index=True),
    Column("currency_symbol", String(8), nullable=False, server_default="$"),
    Column("image_url", Text, nullable=False, server_default=""),
    Column("rating", Float, nullable=False, server_default="0"),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("country IN ('india', 'america')", name="ck_restaurants_country"),
    CheckConstraint("rating >= 0 AND rating <= 5", name="ck_restaurants_rating"),
)

_menu_items = Table(
    "menu_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("restaurant_id", Integer, nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("price", Float, nullable=False),
    Column("category", String(100), nullable=False),
    Column("image_url", Text, nullable=False, server_default=""),
    Column("is_available", Boolean, nullable=False, server_default="1"),
    CheckConstraint("price >= 0", name="ck_menu_items_price"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or default_db_url("foodorder_catalog.db", Path(__file__).parent))
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Restaurants
    # ------------------------------------------------------------------

    def create_restaurant(self, restaurant: Restaurant) -> int:
        """Insert a restaurant and return its assigned database ID."""
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _restaurants.insert().values(
                    name=restaurant.name,
                    description=restaurant.description,
                    cuisine=restaurant.cuisine,
                    country=restaurant.country,
                    currency_symbol=restaurant.currency_symbol,
                    image_url=restaurant.image_url,
                    rating=restaurant.rating,
                    is_active=restaurant.is_active,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_restaurant(self, restaurant_id: int) -> Optional[Restaurant]:
        with self.engine.connect() as conn:
            row = conn.execute(_restaurants.select().where(_restaurants.c.id == restaurant_id)).fetchone()
        return _row_to_restaurant(row) if row is not None else None

    def list_restaurants(self, filters: Optional[Mapping[str, Any]] = None) -> list[Restaurant]:
        """Return active restaurants matching filters, best rated first, then by name."""
        stmt = _restaurants.select().where(_restaurants.c.is_active.is_(True))
        stmt = apply_filters(stmt, _restaurants, filters)
        stmt = stmt.order_by(_restaurants.c.rating.desc(), _restaurants.c.name)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_restaurant(r) for r in rows]

    # ------------------------------------------------------------------
    # Menu items
    # ------------------------------------------------------------------

    def create_menu_item(self, item: MenuItem) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _menu_items.insert().values(
                    restaurant_id=item.restaurant_id,
                    name=item.name,
                    description=item.description,
                    price=item.price,
                    category=item.category,
                    image_url=item.image_url,
                    is_available=item.is_available,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_menu_items(self, restaurant_id: int) -> list[MenuItem]:
        """Return the available items on a restaurant's menu, grouped by category."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _menu_items.select()
                .where((_menu_items.c.restaurant_id == restaurant_id) & (_menu_items.c.is_available.is_(True)))
                .order_by(_menu_items.c.category, _menu_items.c.name)
            ).fetchall()
        return [_row_to_menu_item(r) for r in rows]

    def get_menu_items(self, item_ids: Iterable[int]) -> dict[int, MenuItem]:
        """Fetch menu items by id in one query. Missing ids are simply absent."""
        ids = list(set(item_ids))
        if not ids:
            return {}
        with self.engine.connect() as conn:
            rows = conn.execute(_menu_items.select().where(_menu_items.c.id.in_(ids))).fetchall()
        return {r.id: _row_to_menu_item(r) for r in rows}

    def delete_all(self) -> None:
        """Remove every restaurant and menu item. Used by the seed command's --reset."""
        with self.engine.connect() as conn:
            conn.execute(_menu_items.delete())
            conn.execute(_restaurants.delete())
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_restaurant(row) -> Restaurant:
    return Restaurant(
        id=row.id,
        name=row.name,
        description=row.description,
        cuisine=row.cuisine,
        country=row.country,
        currency_symbol=row.currency_symbol or "$",
        image_url=row.image_url,
        rating=row.rating,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_menu_item(row) -> MenuItem:
    return MenuItem(
        id=row.id,
        restaurant_id=row.restaurant_id,
        name=row.name,
        description=row.description,
        price=row.price,
        category=row.category,
        image_url=row.image_url,
        is_available=bool(row.is_available),
    )
