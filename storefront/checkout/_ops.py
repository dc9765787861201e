"""Checkout requests."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain import Cart, PlacedOrder, Quote, ShippingInfo, UserId
from storefront.errors import ShopError
from storefront.ops import Op


@dataclass(frozen=True, slots=True)
class CheckoutPreview:
    cart: Cart
    quote: Quote


@dataclass(frozen=True, slots=True)
class PreviewCheckout(Op[CheckoutPreview, ShopError]):
    user_id: UserId


@dataclass(frozen=True, slots=True)
class PlaceOrder(Op[PlacedOrder, ShopError]):
    """
    Turn the user's cart into an order.

    A repeated ``idempotency_key`` for the same user returns the order the
    first request created.
    """

    user_id: UserId
    shipping: ShippingInfo
    idempotency_key: str | None = None


__all__ = ("CheckoutPreview", "PreviewCheckout", "PlaceOrder")
