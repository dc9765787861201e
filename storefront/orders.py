"""
Orders — reads, status changes and deletion.

Cancelling is the one compensating action: stock goes back exactly once,
guarded by a conditional status update inside the same transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kungfu import Error, Ok, Result
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront import db as D
from storefront.catalog import CatalogCache
from storefront.domain import CANCELLABLE, Order, OrderId, OrderStatus, Principal
from storefront.errors import Errors, ShopError
from storefront.ops import Op, ops

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Ops
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class GetOrder(Op[Order, ShopError]):
    actor: Principal
    order_id: str


@dataclass(frozen=True, slots=True)
class ListOrders(Op[tuple[Order, ...], ShopError]):
    """The caller's own orders, newest first."""

    actor: Principal


@dataclass(frozen=True, slots=True)
class AdminListOrders(Op[tuple[Order, ...], ShopError]):
    actor: Principal
    status: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateOrderStatus(Op[Order, ShopError]):
    """
    Owners may only cancel; admins may set any status.

    ``status`` is the raw value so unknown names are reported, not raised.
    """

    actor: Principal
    order_id: str
    status: str


@dataclass(frozen=True, slots=True)
class DeleteOrder(Op[str, ShopError]):
    actor: Principal
    order_id: str


# ═══════════════════════════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════════════════════════

async def _load(session: AsyncSession, order_id: str) -> D.OrderTable | None:
    return await session.scalar(select(D.OrderTable).where(D.OrderTable.id == order_id))


def _parse_status(value: str) -> OrderStatus | None:
    try:
        return OrderStatus(value.upper())
    except ValueError:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════

async def get_order(req: GetOrder, db: D.Database) -> Result[Order, ShopError]:
    async with db.session() as session:
        row = await _load(session, req.order_id)
        if row is None:
            return Error(Errors.not_found("Order"))
        if row.user_id != req.actor.user_id and not req.actor.is_admin:
            return Error(Errors.forbidden("Unauthorized access to this order"))
        return Ok(D.to_order(row))


async def list_orders(req: ListOrders, db: D.Database) -> Result[tuple[Order, ...], ShopError]:
    async with db.session() as session:
        rows = await session.scalars(
            select(D.OrderTable)
            .where(D.OrderTable.user_id == req.actor.user_id)
            .order_by(D.OrderTable.created_at.desc())
        )
        return Ok(tuple(D.to_order(r) for r in rows))


async def admin_list_orders(
    req: AdminListOrders, db: D.Database
) -> Result[tuple[Order, ...], ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))

    stmt = select(D.OrderTable).order_by(D.OrderTable.created_at.desc())
    if req.status is not None:
        status = _parse_status(req.status)
        if status is None:
            return Error(Errors.invalid("Invalid status value"))
        stmt = stmt.where(D.OrderTable.status == status.value)

    async with db.session() as session:
        rows = await session.scalars(stmt)
        return Ok(tuple(D.to_order(r) for r in rows))


async def _cancel(session: AsyncSession, row: D.OrderTable) -> bool:
    """Flip to CANCELLED and restore stock. False if another request won."""
    flipped = await session.execute(
        update(D.OrderTable)
        .where(
            D.OrderTable.id == row.id,
            D.OrderTable.status.in_([s.value for s in CANCELLABLE]),
        )
        .values(status=OrderStatus.CANCELLED.value)
        .execution_options(synchronize_session=False)
    )
    if flipped.rowcount != 1:
        return False

    for item in row.items:
        await session.execute(
            update(D.ProductTable)
            .where(D.ProductTable.id == item.product_id)
            .values(stock=D.ProductTable.stock + item.quantity)
            .execution_options(synchronize_session=False)
        )
    return True


async def _move(
    session: AsyncSession, order_id: OrderId, current: OrderStatus, target: OrderStatus
) -> bool:
    """Set ``target`` if the order is still ``current``."""
    moved = await session.execute(
        update(D.OrderTable)
        .where(D.OrderTable.id == order_id, D.OrderTable.status == current.value)
        .values(status=target.value)
        .execution_options(synchronize_session=False)
    )
    return moved.rowcount == 1


async def update_order_status(
    req: UpdateOrderStatus, db: D.Database, catalog: CatalogCache
) -> Result[Order, ShopError]:
    target = _parse_status(req.status)
    if target is None:
        return Error(Errors.invalid("Invalid status value"))

    async with db.transaction() as session:
        row = await _load(session, req.order_id)
        if row is None:
            return Error(Errors.not_found("Order"))
        if row.user_id != req.actor.user_id and not req.actor.is_admin:
            return Error(Errors.forbidden("Unauthorized to update this order"))
        if not req.actor.is_admin and target is not OrderStatus.CANCELLED:
            return Error(Errors.forbidden("Only an admin can change order status"))

        current = OrderStatus(row.status)
        if current is OrderStatus.CANCELLED:
            return Error(Errors.conflict("Order is already cancelled"))

        if target is OrderStatus.CANCELLED:
            if current not in CANCELLABLE:
                return Error(Errors.conflict(f"A {current.value} order can no longer be cancelled"))
            if not await _cancel(session, row):
                return Error(Errors.conflict("Order status changed concurrently"))
        elif not await _move(session, row.id, current, target):
            return Error(Errors.conflict("Order status changed concurrently"))

    if target is OrderStatus.CANCELLED:
        await catalog.invalidate_products()
        logger.info("Order %s cancelled by %s, stock restored", req.order_id, req.actor.email)
    else:
        logger.info("Order %s moved to %s by %s", req.order_id, target.value, req.actor.email)

    async with db.session() as session:
        row = await _load(session, req.order_id)
        if row is None:
            return Error(Errors.not_found("Order"))
        return Ok(D.to_order(row))


async def delete_order(req: DeleteOrder, db: D.Database) -> Result[str, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))

    async with db.transaction() as session:
        row = await _load(session, req.order_id)
        if row is None:
            return Error(Errors.not_found("Order"))
        if row.status != OrderStatus.CANCELLED.value:
            return Error(Errors.invalid("Only cancelled orders can be deleted"))
        await session.delete(row)

    logger.info("Order %s deleted by %s", req.order_id, req.actor.email)
    return Ok(req.order_id)


handlers = (
    ops()
    .on(GetOrder, get_order)
    .on(ListOrders, list_orders)
    .on(AdminListOrders, admin_list_orders)
    .on(UpdateOrderStatus, update_order_status)
    .on(DeleteOrder, delete_order)
)


__all__ = (
    "GetOrder",
    "ListOrders",
    "AdminListOrders",
    "UpdateOrderStatus",
    "DeleteOrder",
    "handlers",
)
