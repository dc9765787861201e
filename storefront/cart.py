"""
Cart — one line per (user, product); quantities are checked against stock
when they change, and again at checkout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from kungfu import Error, Ok, Result
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront import db as D
from storefront.domain import Cart, UserId
from storefront.errors import Errors, ShopError
from storefront.ops import Op, ops

type CartAction = Literal["add", "set"]


# ═══════════════════════════════════════════════════════════════════════════════
# Ops
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class GetCart(Op[Cart, ShopError]):
    user_id: UserId


@dataclass(frozen=True, slots=True)
class AddToCart(Op[Cart, ShopError]):
    """``add`` increments an existing line, ``set`` replaces its quantity."""

    user_id: UserId
    product_id: str
    quantity: int = 1
    action: CartAction = "add"


@dataclass(frozen=True, slots=True)
class UpdateCartItem(Op[Cart, ShopError]):
    """A quantity of zero or less removes the line."""

    user_id: UserId
    product_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class RemoveFromCart(Op[Cart, ShopError]):
    user_id: UserId
    product_id: str


@dataclass(frozen=True, slots=True)
class ClearCart(Op[int, ShopError]):
    user_id: UserId


# ═══════════════════════════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════════════════════════

async def load_cart(session: AsyncSession, user_id: UserId) -> Cart:
    rows = await session.scalars(
        select(D.CartItemTable)
        .where(D.CartItemTable.user_id == user_id)
        .order_by(D.CartItemTable.created_at.desc())
    )
    return Cart(user_id=user_id, lines=tuple(D.to_cart_line(r) for r in rows))


async def _find_line(
    session: AsyncSession, user_id: UserId, product_id: str
) -> D.CartItemTable | None:
    return await session.scalar(
        select(D.CartItemTable).where(
            D.CartItemTable.user_id == user_id,
            D.CartItemTable.product_id == product_id,
        )
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════

async def get_cart(req: GetCart, db: D.Database) -> Result[Cart, ShopError]:
    async with db.session() as session:
        return Ok(await load_cart(session, req.user_id))


async def add_to_cart(req: AddToCart, db: D.Database) -> Result[Cart, ShopError]:
    if not req.product_id:
        return Error(Errors.invalid("Product ID is required"))
    if req.quantity < 1:
        return Error(Errors.invalid("Quantity must be at least 1"))
    if req.action not in ("add", "set"):
        return Error(Errors.invalid("Invalid action"))

    async with db.transaction() as session:
        product = await session.get(D.ProductTable, req.product_id)
        if product is None:
            return Error(Errors.not_found("Product"))

        line = await _find_line(session, req.user_id, req.product_id)
        held = line.quantity if line is not None else 0

        if req.action == "set":
            if req.quantity > product.stock:
                return Error(Errors.invalid(f"Only {product.stock} items available in stock"))
            quantity = req.quantity
        else:
            quantity = held + req.quantity
            if quantity > product.stock:
                return Error(
                    Errors.invalid(
                        f"Cannot add {req.quantity} items. "
                        f"Only {max(product.stock - held, 0)} more available"
                    )
                )

        if line is None:
            session.add(
                D.CartItemTable(user_id=req.user_id, product_id=req.product_id, quantity=quantity)
            )
        else:
            line.quantity = quantity
        await session.flush()
        return Ok(await load_cart(session, req.user_id))


async def update_cart_item(req: UpdateCartItem, db: D.Database) -> Result[Cart, ShopError]:
    if not req.product_id:
        return Error(Errors.invalid("Product ID is required"))

    async with db.transaction() as session:
        line = await _find_line(session, req.user_id, req.product_id)
        if line is None:
            return Error(Errors.not_found("Cart item"))

        if req.quantity <= 0:
            await session.delete(line)
        else:
            product = await session.get(D.ProductTable, req.product_id)
            if product is None:
                return Error(Errors.not_found("Product"))
            if req.quantity > product.stock:
                return Error(Errors.invalid(f"Only {product.stock} items available in stock"))
            line.quantity = req.quantity

        await session.flush()
        return Ok(await load_cart(session, req.user_id))


async def remove_from_cart(req: RemoveFromCart, db: D.Database) -> Result[Cart, ShopError]:
    async with db.transaction() as session:
        line = await _find_line(session, req.user_id, req.product_id)
        if line is None:
            return Error(Errors.not_found("Cart item"))
        await session.delete(line)
        await session.flush()
        return Ok(await load_cart(session, req.user_id))


async def clear_cart(req: ClearCart, db: D.Database) -> Result[int, ShopError]:
    async with db.transaction() as session:
        result = await session.execute(
            delete(D.CartItemTable).where(D.CartItemTable.user_id == req.user_id)
        )
        return Ok(result.rowcount or 0)


handlers = (
    ops()
    .on(GetCart, get_cart)
    .on(AddToCart, add_to_cart)
    .on(UpdateCartItem, update_cart_item)
    .on(RemoveFromCart, remove_from_cart)
    .on(ClearCart, clear_cart)
)


__all__ = (
    "CartAction",
    "GetCart",
    "AddToCart",
    "UpdateCartItem",
    "RemoveFromCart",
    "ClearCart",
    "load_cart",
    "handlers",
)
