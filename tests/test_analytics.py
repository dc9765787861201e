"""Seller dashboard aggregates."""

from datetime import datetime

import pytest_asyncio

from storefront.analytics import (
    DashboardSummary,
    OrderAnalytics,
    SellerCategories,
    SellerProducts,
    SellerRevenue,
    SellerSales,
    percentage,
)
from storefront.checkout import PlaceOrder
from storefront.domain import OrderStatus
from storefront.orders import UpdateOrderStatus

from conftest import SHIPPING, ok


@pytest_asyncio.fixture
async def market(runner, shop):
    """
    Two sellers sharing one order, plus a second order that gets cancelled.

    Seller ``mine`` sells a 2000 mug (stock 20) and a featured 500 spoon
    (stock 3); seller ``theirs`` sells a 7000 lamp.
    """
    mine = await shop.admin("mine@example.com")
    theirs = await shop.admin("theirs@example.com")
    kitchen = await shop.category("Kitchen")
    lighting = await shop.category("Lighting")
    mug = await shop.product(kitchen, "Blue Mug", price=2000, stock=20, seller_id=mine.user_id)
    spoon = await shop.product(
        kitchen, "Tea Spoon", price=500, stock=3, seller_id=mine.user_id, featured=True
    )
    lamp = await shop.product(lighting, "Desk Lamp", price=7000, stock=5, seller_id=theirs.user_id)

    buyer = await shop.user("buyer@example.com")
    await shop.put_in_cart(buyer.user_id, mug, 2)
    await shop.put_in_cart(buyer.user_id, lamp, 1)
    await runner.run(PlaceOrder(buyer.user_id, SHIPPING))

    quitter = await shop.user("quitter@example.com")
    await shop.put_in_cart(quitter.user_id, mug, 1)
    cancelled = ok(await runner.run(PlaceOrder(quitter.user_id, SHIPPING))).order
    await runner.run(UpdateOrderStatus(quitter, cancelled.id, "CANCELLED"))

    await shop.put_in_cart(quitter.user_id, spoon, 1)
    return mine, theirs


def test_percentage():
    assert percentage(1, 3) == 33.3
    assert percentage(0, 0) == 0.0


class TestSellerFigures:
    async def test_sales_count_only_the_sellers_share(self, runner, market):
        mine, theirs = market

        sales = ok(await runner.run(SellerSales(mine.user_id)))
        other = ok(await runner.run(SellerSales(theirs.user_id)))

        assert sales.order_count == 1
        assert sales.total_sales == 4000
        assert sales.orders[0].seller_total == 4000
        assert sales.orders[0].total > sales.orders[0].seller_total
        assert sales.orders[0].customer == "Buyer Tester"
        assert other.total_sales == 7000

    async def test_revenue_lands_in_the_current_month(self, runner, market):
        mine, _ = market

        revenue = ok(await runner.run(SellerRevenue(mine.user_id, datetime.now())))

        assert len(revenue.monthly) == 12
        assert revenue.current_month == 4000
        assert revenue.previous_month == 0
        assert revenue.percentage_change == 100.0
        assert revenue.monthly[-1].month == datetime.now().strftime("%b %Y")

    async def test_product_performance(self, runner, market):
        mine, _ = market

        stats = ok(await runner.run(SellerProducts(mine.user_id)))

        by_name = {p.product.name: p for p in stats.products}
        assert stats.total == 2
        assert stats.featured == 1
        assert stats.low_stock == 1
        assert stats.out_of_stock == 0
        assert by_name["Blue Mug"].total_sold == 2
        assert by_name["Blue Mug"].revenue == 4000
        assert by_name["Tea Spoon"].in_carts == 1

    async def test_category_inventory(self, runner, market):
        mine, _ = market

        stats = {c.category.name: c for c in ok(await runner.run(SellerCategories(mine.user_id)))}

        assert stats["Kitchen"].seller_product_count == 2
        assert stats["Kitchen"].inventory_value == 2000 * 18 + 500 * 3
        assert stats["Lighting"].seller_product_count == 0
        assert stats["Lighting"].total_product_count == 1


class TestDashboard:
    async def test_dashboard_combines_the_aggregates(self, runner, market):
        mine, _ = market

        dashboard = ok(await runner.run(DashboardSummary.for_seller(mine.user_id)))

        assert dashboard.sales.total_sales == 4000
        assert dashboard.revenue.current_month == 4000
        assert dashboard.products.total == 2
        assert len(dashboard.categories) == 2
        assert [o.id for o in dashboard.recent_orders] == [o.id for o in dashboard.sales.orders]

    async def test_order_breakdown_includes_cancelled(self, runner, market):
        mine, _ = market

        breakdown = ok(await runner.run(OrderAnalytics(mine.user_id)))

        counts = {s.status: s.count for s in breakdown.by_status}
        assert breakdown.total_orders == 2
        assert counts[OrderStatus.PENDING] == 1
        assert counts[OrderStatus.CANCELLED] == 1
        assert sum(b.count for b in breakdown.value_distribution) == 2
        assert {s.status for s in breakdown.by_status} == set(OrderStatus)


@pytest_asyncio.fixture
async def history(shop):
    """A seller with a mug and a buyer, no orders yet."""
    seller = await shop.admin("history@example.com")
    kitchen = await shop.category("Kitchen")
    mug = await shop.product(kitchen, "Blue Mug", price=1000, stock=50, seller_id=seller.user_id)
    buyer = await shop.user("buyer@example.com")
    return seller, mug, buyer


class TestRevenueWindow:
    now = datetime(2026, 1, 15, 12, 0)

    async def test_change_against_a_previous_month(self, runner, shop, history):
        seller, mug, buyer = history
        await shop.order(buyer.user_id, mug, 3000, datetime(2025, 12, 20))
        await shop.order(buyer.user_id, mug, 4000, datetime(2026, 1, 3))

        revenue = ok(await runner.run(SellerRevenue(seller.user_id, self.now)))

        assert revenue.previous_month == 3000
        assert revenue.current_month == 4000
        assert revenue.percentage_change == 33.33

    async def test_drop_is_negative(self, runner, shop, history):
        seller, mug, buyer = history
        await shop.order(buyer.user_id, mug, 4000, datetime(2025, 12, 1))
        await shop.order(buyer.user_id, mug, 1000, datetime(2026, 1, 2))

        revenue = ok(await runner.run(SellerRevenue(seller.user_id, self.now)))

        assert revenue.percentage_change == -75.0

    async def test_twelve_buckets_across_the_year_boundary(self, runner, shop, history):
        seller, mug, buyer = history
        await shop.order(buyer.user_id, mug, 10000, datetime(2025, 1, 31, 23, 59))
        await shop.order(buyer.user_id, mug, 500, datetime(2025, 2, 1))
        await shop.order(buyer.user_id, mug, 3000, datetime(2025, 12, 31, 23, 0))

        revenue = ok(await runner.run(SellerRevenue(seller.user_id, self.now)))

        months = [m.month for m in revenue.monthly]
        assert len(months) == 12
        assert months[0] == "Feb 2025"
        assert months[-2:] == ["Dec 2025", "Jan 2026"]
        assert revenue.monthly[0].revenue == 500
        assert revenue.monthly[-2].revenue == 3000
        assert sum(m.revenue for m in revenue.monthly) == 3500

    async def test_cancelled_orders_do_not_count(self, runner, shop, history):
        seller, mug, buyer = history
        await shop.order(buyer.user_id, mug, 2000, datetime(2026, 1, 5))
        await shop.order(buyer.user_id, mug, 9000, datetime(2026, 1, 6), status="CANCELLED")

        revenue = ok(await runner.run(SellerRevenue(seller.user_id, self.now)))

        assert revenue.current_month == 2000
        assert revenue.percentage_change == 100.0
