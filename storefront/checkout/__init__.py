"""
Checkout — pricing preview and order placement.

    runner.run(PreviewCheckout(user_id))
    runner.run(PlaceOrder(user_id, shipping, idempotency_key="k-1"))
"""

from __future__ import annotations

from kungfu import Error, Ok, Result

from storefront import db as D
from storefront.cart import load_cart
from storefront.catalog import CatalogCache
from storefront.checkout._nodes import CustomerNode, PlaceOrderNode, ShippingNode
from storefront.checkout._ops import CheckoutPreview, PlaceOrder, PreviewCheckout
from storefront.checkout._pricing import PricingPolicy
from storefront.checkout._shipping import validate_shipping
from storefront.config import Settings
from storefront.domain import PlacedOrder
from storefront.errors import ShopError
from storefront.ops import ops


async def preview_checkout(
    req: PreviewCheckout, db: D.Database, settings: Settings
) -> Result[CheckoutPreview, ShopError]:
    async with db.session() as session:
        cart = await load_cart(session, req.user_id)
    quote = PricingPolicy.from_settings(settings).quote(cart.total_price)
    return Ok(CheckoutPreview(cart=cart, quote=quote))


async def place_order(
    req: PlaceOrder, db: D.Database, settings: Settings, catalog: CatalogCache
) -> Result[PlacedOrder, ShopError]:
    match await PlaceOrderNode.execute(req, db, settings):
        case Ok(placed):
            if not placed.replayed:
                await catalog.invalidate_products()
            return Ok(placed)
        case Error(e):
            return Error(e)


handlers = (
    ops()
    .on(PreviewCheckout, preview_checkout)
    .on(PlaceOrder, place_order)
)


__all__ = (
    "CheckoutPreview",
    "PreviewCheckout",
    "PlaceOrder",
    "PricingPolicy",
    "validate_shipping",
    "ShippingNode",
    "CustomerNode",
    "PlaceOrderNode",
    "handlers",
)
