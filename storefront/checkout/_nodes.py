"""
Order placement graph.

    PlaceOrder ─┬─ ShippingNode ─┐
                └─ CustomerNode ─┴─ PlaceOrderNode (one DB transaction)

ShippingNode and CustomerNode are independent and resolve concurrently.
PlaceOrderNode does every write: order, order items, stock decrement, cart
clear. Any ``CheckoutError`` raised inside its transaction rolls the whole
thing back.
"""

import logging
from datetime import datetime

from kungfu import Error, Ok, Result
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront import db as D
from storefront import graph as G
from storefront.checkout._ops import PlaceOrder
from storefront.checkout._pricing import PricingPolicy
from storefront.checkout._shipping import validate_shipping
from storefront.config import Settings
from storefront.domain import Order, OrderItem, OrderStatus, PlacedOrder, ShippingInfo, User
from storefront.errors import CheckoutError, Errors, ShopError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Inputs
# ═══════════════════════════════════════════════════════════════════════════════

@G.node
class ShippingNode:
    """Validated shipping details."""

    def __init__(self, data: ShippingInfo) -> None:
        self.data = data

    @classmethod
    async def __compose__(cls, req: PlaceOrder) -> "ShippingNode":
        match validate_shipping(req.shipping):
            case Ok(info):
                return cls(info)
            case Error(e):
                raise CheckoutError(e)


@G.node
class CustomerNode:
    """The account placing the order; a stale token for a deleted user fails here."""

    def __init__(self, data: User) -> None:
        self.data = data

    @classmethod
    async def __compose__(cls, req: PlaceOrder, db: D.Database) -> "CustomerNode":
        async with db.session() as session:
            row = await session.get(D.UserTable, req.user_id)
            if row is None:
                raise CheckoutError(Errors.unauthorized("Unknown user"))
            return cls(D.to_user(row))


# ═══════════════════════════════════════════════════════════════════════════════
# Transaction
# ═══════════════════════════════════════════════════════════════════════════════

async def _find_replay(session: AsyncSession, user_id: str, key: str) -> Order | None:
    row = await session.scalar(
        select(D.OrderTable).where(
            D.OrderTable.user_id == user_id,
            D.OrderTable.idempotency_key == key,
        )
    )
    return D.to_order(row) if row is not None else None


async def _take_stock(session: AsyncSession, product_id: str, quantity: int) -> bool:
    """Decrement stock only if enough is left. False means someone got there first."""
    result = await session.execute(
        update(D.ProductTable)
        .where(D.ProductTable.id == product_id, D.ProductTable.stock >= quantity)
        .values(stock=D.ProductTable.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


@G.node
class PlaceOrderNode:
    def __init__(self, data: PlacedOrder) -> None:
        self.data = data

    @classmethod
    async def __compose__(
        cls,
        shipping: ShippingNode,
        customer: CustomerNode,
        req: PlaceOrder,
        db: D.Database,
        settings: Settings,
    ) -> "PlaceOrderNode":
        user = customer.data
        pricing = PricingPolicy.from_settings(settings)

        async with db.transaction() as session:
            if req.idempotency_key:
                existing = await _find_replay(session, user.id, req.idempotency_key)
                if existing is not None:
                    return cls(PlacedOrder(order=existing, replayed=True))

            lines = (
                await session.scalars(
                    select(D.CartItemTable)
                    .where(D.CartItemTable.user_id == user.id)
                    .order_by(D.CartItemTable.created_at)
                )
            ).all()
            if not lines:
                raise CheckoutError(Errors.invalid("Cart is empty"))

            for line in lines:
                if line.quantity > line.product.stock:
                    raise CheckoutError(
                        Errors.out_of_stock(line.product.name, line.quantity, line.product.stock)
                    )

            for line in lines:
                if not await _take_stock(session, line.product_id, line.quantity):
                    raise CheckoutError(Errors.out_of_stock(line.product.name, line.quantity, 0))

            items = tuple(
                OrderItem(
                    product_id=line.product_id,
                    product_name=line.product.name,
                    product_slug=line.product.slug,
                    quantity=line.quantity,
                    unit_price=line.product.price,
                )
                for line in lines
            )
            quote = pricing.quote(sum(item.subtotal for item in items))
            info = shipping.data
            now = datetime.now()

            row = D.OrderTable(
                id=D.new_id("ord"),
                user_id=user.id,
                status=OrderStatus.PENDING.value,
                shipping_name=info.full_name,
                shipping_email=info.email,
                shipping_phone=info.phone,
                shipping_address=info.address,
                shipping_city=info.city,
                shipping_state=info.state,
                shipping_zip=info.zip_code,
                subtotal=quote.subtotal,
                tax=quote.tax,
                shipping_cost=quote.shipping,
                total=quote.total,
                idempotency_key=req.idempotency_key,
                created_at=now,
                updated_at=now,
                items=[
                    D.OrderItemTable(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                    )
                    for item in items
                ],
            )
            session.add(row)
            await session.execute(delete(D.CartItemTable).where(D.CartItemTable.user_id == user.id))

            order = Order(
                id=row.id,
                user_id=user.id,
                status=OrderStatus.PENDING,
                shipping=info,
                items=items,
                subtotal=quote.subtotal,
                tax=quote.tax,
                shipping_cost=quote.shipping,
                total=quote.total,
                created_at=now,
                updated_at=now,
                idempotency_key=req.idempotency_key,
            )

        return cls(PlacedOrder(order=order, replayed=False))

    @classmethod
    async def execute(
        cls, req: PlaceOrder, db: D.Database, settings: Settings
    ) -> Result[PlacedOrder, ShopError]:
        """Run the graph; business failures come back as ``Error``."""
        try:
            node = await G.solve(cls, {PlaceOrder: req, D.Database: db, Settings: settings})
        except CheckoutError as e:
            logger.warning("Checkout rejected for %s: %s", req.user_id, e.error.message)
            return Error(e.error)
        except IntegrityError:
            # a concurrent retry with the same key committed first
            if not req.idempotency_key:
                raise
            async with db.session() as session:
                existing = await _find_replay(session, req.user_id, req.idempotency_key)
            if existing is None:
                raise
            return Ok(PlacedOrder(order=existing, replayed=True))

        placed = node.data
        if placed.replayed:
            logger.info("Replayed order %s for key %s", placed.order.id, req.idempotency_key)
        else:
            logger.info(
                "Order %s placed by %s: %d items, total %d",
                placed.order.id,
                req.user_id,
                placed.order.item_count,
                placed.order.total,
            )
        return Ok(placed)


__all__ = ("ShippingNode", "CustomerNode", "PlaceOrderNode")
