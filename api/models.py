"""
API request and response models for the food ordering REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/, catalog/, orders/ and
payments/, which own the internal domain representation. Route handlers map
between the two.

Request models forbid unknown fields: a body is parsed into one of these
closed shapes before any authorization logic looks at it, and an unexpected
key is a 422 rather than something silently ignored. Order requests carry
only ids and quantities -- names, prices and country always come from the
server.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from catalog.models import MenuItem, Restaurant
from orders.models import Order, OrderItem
from payments.models import PaymentMethod

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PaymentTypeEnum(str, Enum):
    credit_card = "credit_card"
    debit_card = "debit_card"
    upi = "upi"


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    """A user without the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    role: str
    country: str
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            country=user.country,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


class LoginResponse(BaseModel):
    """Response body for a successful login. The token is also set as a cookie."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class RestaurantResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str
    cuisine: str
    country: str
    currency_symbol: str
    image_url: str
    rating: float
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_restaurant(cls, restaurant: Restaurant) -> "RestaurantResponse":
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            description=restaurant.description,
            cuisine=restaurant.cuisine,
            country=restaurant.country,
            currency_symbol=restaurant.currency_symbol,
            image_url=restaurant.image_url,
            rating=restaurant.rating,
            is_active=restaurant.is_active,
            created_at=restaurant.created_at,
            updated_at=restaurant.updated_at,
        )


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    restaurant_id: int
    name: str
    description: str
    price: float
    category: str
    image_url: str
    is_available: bool

    @classmethod
    def from_menu_item(cls, item: MenuItem) -> "MenuItemResponse":
        return cls(
            id=item.id,
            restaurant_id=item.restaurant_id,
            name=item.name,
            description=item.description,
            price=item.price,
            category=item.category,
            image_url=item.image_url,
            is_available=item.is_available,
        )


class RestaurantDetailResponse(BaseModel):
    """Response for GET /api/v1/restaurants/{id}: the restaurant and its available menu."""

    model_config = ConfigDict(frozen=True)

    restaurant: RestaurantResponse
    menu_items: list[MenuItemResponse]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderLineRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    menu_item_id: int = Field(ge=1)
    quantity: int = Field(ge=1, le=99)


class OrderPreviewRequest(BaseModel):
    """Request body for POST /api/v1/orders/preview."""

    model_config = ConfigDict(extra="forbid")

    restaurant_id: int = Field(ge=1)
    items: list[OrderLineRequest] = Field(min_length=1, max_length=50)


class OrderCreate(OrderPreviewRequest):
    """Request body for POST /api/v1/orders (checkout)."""

    payment_method_id: Optional[int] = Field(default=None, ge=1)


class OrderCancel(BaseModel):
    """Request body for POST /api/v1/orders/{id}/cancel. The body itself is optional."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    reason: Optional[str] = Field(default=None, max_length=500)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    menu_item_id: int
    name: str
    price: float
    quantity: int

    @classmethod
    def from_item(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(menu_item_id=item.menu_item_id, name=item.name, price=item.price, quantity=item.quantity)


class OrderPreviewResponse(BaseModel):
    """Server-priced order lines. Nothing is stored."""

    model_config = ConfigDict(frozen=True)

    restaurant_id: int
    country: str
    currency_symbol: str
    items: list[OrderItemResponse]
    total: float


class OrderResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    restaurant_id: int
    items: list[OrderItemResponse]
    status: str
    total: float
    country: str
    currency_symbol: str
    payment_method_id: Optional[int] = None
    cancelled_at: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            user_id=order.user_id,
            restaurant_id=order.restaurant_id,
            items=[OrderItemResponse.from_item(i) for i in order.items],
            status=order.status,
            total=order.total,
            country=order.country,
            currency_symbol=order.currency_symbol,
            payment_method_id=order.payment_method_id,
            cancelled_at=order.cancelled_at,
            cancel_reason=order.cancel_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


# ---------------------------------------------------------------------------
# Payment methods
# ---------------------------------------------------------------------------


class PaymentMethodCreate(BaseModel):
    """Request body for POST /api/v1/payments."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    type: PaymentTypeEnum
    last_four_digits: str = Field(pattern=r"^[0-9]{4}$")
    is_default: bool = False


class PaymentMethodPatch(BaseModel):
    """Request body for PATCH /api/v1/payments/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[PaymentTypeEnum] = None
    last_four_digits: Optional[str] = Field(default=None, pattern=r"^[0-9]{4}$")
    is_default: Optional[bool] = None


class PaymentMethodResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    type: str
    last_four_digits: str
    is_default: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_method(cls, method: PaymentMethod) -> "PaymentMethodResponse":
        return cls(
            id=method.id,
            name=method.name,
            type=method.type,
            last_four_digits=method.last_four_digits,
            is_default=method.is_default,
            created_at=method.created_at,
            updated_at=method.updated_at,
        )
