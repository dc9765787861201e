"""Order lookup, status changes and the cancellation compensation."""

import asyncio
from types import SimpleNamespace

import pytest_asyncio
from kungfu import Ok

from storefront import orders
from storefront.checkout import PlaceOrder
from storefront.domain import OrderStatus
from storefront.errors import ErrorKind
from storefront.orders import (
    AdminListOrders,
    DeleteOrder,
    GetOrder,
    ListOrders,
    UpdateOrderStatus,
)

from conftest import SHIPPING, kind_of, ok


@pytest_asyncio.fixture
async def placed(runner, shop):
    """A PENDING order for 2 mugs and 1 kettle; stock left at 3 and 4."""
    user = await shop.user()
    admin = await shop.admin()
    kitchen = await shop.category()
    mug = await shop.product(kitchen, "Blue Mug", price=1000, stock=5)
    kettle = await shop.product(kitchen, "Steel Kettle", price=3000, stock=5)
    await shop.put_in_cart(user.user_id, mug, 2)
    await shop.put_in_cart(user.user_id, kettle, 1)
    order = ok(await runner.run(PlaceOrder(user.user_id, SHIPPING))).order
    return user, admin, order, mug, kettle


class TestCancellation:
    async def test_cancelling_pending_order_restores_exact_stock(self, runner, shop, placed):
        user, _, order, mug, kettle = placed
        assert await shop.stock(mug) == 3
        assert await shop.stock(kettle) == 4

        result = await runner.run(UpdateOrderStatus(user, order.id, "CANCELLED"))

        assert ok(result).status is OrderStatus.CANCELLED
        assert await shop.stock(mug) == 5
        assert await shop.stock(kettle) == 5

    async def test_processing_order_can_be_cancelled_by_admin(self, runner, shop, placed):
        _, admin, order, mug, _ = placed
        await runner.run(UpdateOrderStatus(admin, order.id, "PROCESSING"))

        result = await runner.run(UpdateOrderStatus(admin, order.id, "cancelled"))

        assert ok(result).status is OrderStatus.CANCELLED
        assert await shop.stock(mug) == 5

    async def test_second_cancel_is_a_conflict_and_stock_is_restored_once(
        self, runner, shop, placed
    ):
        user, _, order, mug, _ = placed
        await runner.run(UpdateOrderStatus(user, order.id, "CANCELLED"))

        again = await runner.run(UpdateOrderStatus(user, order.id, "CANCELLED"))

        assert kind_of(again) is ErrorKind.CONFLICT
        assert await shop.stock(mug) == 5

    async def test_concurrent_cancels_restore_stock_once(self, runner, shop, placed):
        user, admin, order, mug, kettle = placed

        results = await asyncio.gather(
            runner.run(UpdateOrderStatus(user, order.id, "CANCELLED")),
            runner.run(UpdateOrderStatus(admin, order.id, "CANCELLED")),
        )

        assert sum(isinstance(r, Ok) for r in results) == 1
        assert await shop.stock(mug) == 5
        assert await shop.stock(kettle) == 5

    async def test_shipped_order_cannot_be_cancelled(self, runner, shop, placed):
        user, admin, order, mug, _ = placed
        await runner.run(UpdateOrderStatus(admin, order.id, "SHIPPED"))

        result = await runner.run(UpdateOrderStatus(user, order.id, "CANCELLED"))

        assert kind_of(result) is ErrorKind.CONFLICT
        assert await shop.stock(mug) == 3


class TestStatusRules:
    async def test_owner_cannot_ship_their_own_order(self, runner, placed):
        user, _, order, _, _ = placed

        result = await runner.run(UpdateOrderStatus(user, order.id, "SHIPPED"))

        assert kind_of(result) is ErrorKind.FORBIDDEN

    async def test_unknown_status_is_invalid(self, runner, placed):
        _, admin, order, _, _ = placed

        result = await runner.run(UpdateOrderStatus(admin, order.id, "LOST"))

        assert kind_of(result) is ErrorKind.INVALID

    async def test_admin_moves_order_forward(self, runner, placed):
        _, admin, order, _, _ = placed

        result = await runner.run(UpdateOrderStatus(admin, order.id, "DELIVERED"))

        assert ok(result).status is OrderStatus.DELIVERED

    async def test_status_read_before_a_concurrent_change_is_a_conflict(
        self, runner, placed, monkeypatch
    ):
        _, admin, order, _, _ = placed
        real_load = orders._load

        async def stale_load(session, order_id):
            row = await real_load(session, order_id)
            # as read just before another request moved the order on
            return SimpleNamespace(id=row.id, user_id=row.user_id, status="PROCESSING")

        monkeypatch.setattr(orders, "_load", stale_load)
        result = await runner.run(UpdateOrderStatus(admin, order.id, "SHIPPED"))
        monkeypatch.undo()

        assert kind_of(result) is ErrorKind.CONFLICT
        assert ok(await runner.run(GetOrder(admin, order.id))).status is OrderStatus.PENDING

    async def test_missing_order(self, runner, placed):
        _, admin, _, _, _ = placed

        result = await runner.run(UpdateOrderStatus(admin, "ord_missing", "SHIPPED"))

        assert kind_of(result) is ErrorKind.NOT_FOUND


class TestReads:
    async def test_owner_and_admin_can_read(self, runner, placed):
        user, admin, order, _, _ = placed

        mine = ok(await runner.run(GetOrder(user, order.id)))
        theirs = ok(await runner.run(GetOrder(admin, order.id)))

        assert mine.id == theirs.id == order.id
        assert {i.product_name for i in mine.items} == {"Blue Mug", "Steel Kettle"}
        assert mine.shipping.zip_code == "560001"

    async def test_other_user_is_forbidden(self, runner, shop, placed):
        _, _, order, _, _ = placed
        stranger = await shop.user("stranger@example.com")

        result = await runner.run(GetOrder(stranger, order.id))

        assert kind_of(result) is ErrorKind.FORBIDDEN

    async def test_list_returns_only_callers_orders(self, runner, shop, placed):
        user, _, order, _, _ = placed
        stranger = await shop.user("stranger@example.com")

        mine = ok(await runner.run(ListOrders(user)))
        theirs = ok(await runner.run(ListOrders(stranger)))

        assert [o.id for o in mine] == [order.id]
        assert theirs == ()

    async def test_admin_list_filters_by_status(self, runner, placed):
        user, admin, order, _, _ = placed
        await runner.run(UpdateOrderStatus(user, order.id, "CANCELLED"))

        cancelled = ok(await runner.run(AdminListOrders(admin, "CANCELLED")))
        pending = ok(await runner.run(AdminListOrders(admin, "PENDING")))

        assert [o.id for o in cancelled] == [order.id]
        assert pending == ()

    async def test_admin_list_requires_admin(self, runner, placed):
        user, _, _, _, _ = placed

        assert kind_of(await runner.run(AdminListOrders(user))) is ErrorKind.FORBIDDEN


class TestDelete:
    async def test_only_cancelled_orders_are_deleted(self, runner, shop, placed):
        user, admin, order, _, _ = placed

        early = await runner.run(DeleteOrder(admin, order.id))
        assert kind_of(early) is ErrorKind.INVALID

        await runner.run(UpdateOrderStatus(user, order.id, "CANCELLED"))
        assert ok(await runner.run(DeleteOrder(admin, order.id))) == order.id
        assert await shop.order_count() == 0

    async def test_users_cannot_delete(self, runner, placed):
        user, _, order, _, _ = placed

        assert kind_of(await runner.run(DeleteOrder(user, order.id))) is ErrorKind.FORBIDDEN
