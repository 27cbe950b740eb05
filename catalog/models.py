"""
catalog/models.py -- Domain dataclasses for restaurants and their menus.

Pure data containers. Every restaurant is tagged with exactly one country;
that tag is what the country-scope rule in auth/rbac.py filters on. Menu
items inherit their restaurant's country.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Restaurant:
    """A restaurant listing.

    id is None before the record is written to the database.
    """

    name: str
    cuisine: str
    country: str  # "india" | "america"
    description: str = ""
    currency_symbol: str = "$"
    image_url: str = ""
    rating: float = 0.0  # 0..5
    is_active: bool = True
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class MenuItem:
    restaurant_id: int
    name: str
    price: float
    category: str
    description: str = ""
    image_url: str = ""
    is_available: bool = True
    id: Optional[int] = None
