"""
Domain — storefront entities.

Plain frozen dataclasses; the database layer maps rows onto them and nothing
outside ``storefront.db`` sees an ORM object. Money is integer cents.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# ═══════════════════════════════════════════════════════════════════════════════
# IDs
# ═══════════════════════════════════════════════════════════════════════════════

type UserId = str
type ProductId = str
type CategoryId = str
type OrderId = str

type Cents = int
"""Money is integer cents everywhere."""


# ═══════════════════════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════════════════════


class Role(Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True, slots=True)
class User:
    id: UserId
    email: str
    first_name: str
    last_name: str
    role: Role
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True, slots=True)
class Principal:
    """Verified token claims of the caller."""

    user_id: UserId
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True, slots=True)
class AuthSession:
    user: User
    token: str
    expires_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Category:
    id: CategoryId
    name: str
    slug: str
    description: str | None


@dataclass(frozen=True, slots=True)
class Product:
    id: ProductId
    name: str
    description: str
    price: Cents
    image: str | None
    stock: int
    featured: bool
    slug: str
    category_id: CategoryId
    seller_id: UserId | None
    category: Category | None = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


@dataclass(frozen=True, slots=True)
class CategoryDetail:
    category: Category
    products: tuple[Product, ...]


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    product: Product
    quantity: int

    @property
    def subtotal(self) -> Cents:
        return self.product.price * self.quantity


@dataclass(frozen=True, slots=True)
class Cart:
    user_id: UserId
    lines: tuple[CartLine, ...]

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self) -> Cents:
        return sum(line.subtotal for line in self.lines)

    @property
    def item_count(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShippingInfo:
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str


@dataclass(frozen=True, slots=True)
class Quote:
    subtotal: Cents
    tax: Cents
    shipping: Cents

    @property
    def total(self) -> Cents:
        return self.subtotal + self.tax + self.shipping


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


@dataclass(frozen=True, slots=True)
class OrderItem:
    product_id: ProductId
    product_name: str
    product_slug: str
    quantity: int
    unit_price: Cents  # copied at purchase time

    @property
    def subtotal(self) -> Cents:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class Order:
    id: OrderId
    user_id: UserId
    status: OrderStatus
    shipping: ShippingInfo
    items: tuple[OrderItem, ...]
    subtotal: Cents
    tax: Cents
    shipping_cost: Cents
    total: Cents
    created_at: datetime
    updated_at: datetime
    idempotency_key: str | None = None

    @property
    def item_count(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class PlacedOrder:
    """Result of checkout; ``replayed`` is True when an idempotency key matched."""

    order: Order
    replayed: bool


__all__ = (
    "UserId",
    "ProductId",
    "CategoryId",
    "OrderId",
    "Cents",
    "Role",
    "User",
    "Principal",
    "AuthSession",
    "Category",
    "Product",
    "CategoryDetail",
    "CartLine",
    "Cart",
    "ShippingInfo",
    "Quote",
    "OrderStatus",
    "CANCELLABLE",
    "OrderItem",
    "Order",
    "PlacedOrder",
)
