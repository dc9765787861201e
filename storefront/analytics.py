"""
Analytics — seller-scoped aggregates for the admin dashboard.

Everything is computed from the seller's own line items; cancelled orders
are left out of every figure. ``DashboardSummary`` declares the four
aggregates as Op fields, so the runner resolves them concurrently, each in
its own session.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from kungfu import Error, Ok, Result
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront import db as D
from storefront.domain import Category, OrderStatus, Product, UserId
from storefront.errors import ShopError
from storefront.ops import Op, ops

LOW_STOCK = 10
RECENT_ORDERS = 5

# (label, lower bound inclusive, upper bound exclusive) in cents
VALUE_BUCKETS: tuple[tuple[str, int, int | None], ...] = (
    ("$0-$50", 0, 5_000),
    ("$50-$100", 5_000, 10_000),
    ("$100-$200", 10_000, 20_000),
    ("$200-$500", 20_000, 50_000),
    ("$500+", 50_000, None),
)


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class SellerOrder:
    id: str
    customer: str
    email: str
    total: int
    seller_total: int
    status: OrderStatus
    created_at: datetime
    item_count: int


@dataclass(frozen=True, slots=True)
class SalesSummary:
    total_sales: int
    order_count: int
    orders: tuple[SellerOrder, ...]


@dataclass(frozen=True, slots=True)
class MonthlyRevenue:
    month: str  # "Jan 2026"
    revenue: int


@dataclass(frozen=True, slots=True)
class RevenueSummary:
    current_month: int
    previous_month: int
    percentage_change: float
    monthly: tuple[MonthlyRevenue, ...]


@dataclass(frozen=True, slots=True)
class ProductPerformance:
    product: Product
    total_sold: int
    revenue: int
    in_carts: int


@dataclass(frozen=True, slots=True)
class ProductStats:
    products: tuple[ProductPerformance, ...]
    total: int
    featured: int
    out_of_stock: int
    low_stock: int


@dataclass(frozen=True, slots=True)
class CategoryStats:
    category: Category
    seller_product_count: int
    total_product_count: int
    inventory_value: int


@dataclass(frozen=True, slots=True)
class Dashboard:
    sales: SalesSummary
    revenue: RevenueSummary
    products: ProductStats
    categories: tuple[CategoryStats, ...]
    recent_orders: tuple[SellerOrder, ...]


@dataclass(frozen=True, slots=True)
class StatusCount:
    status: OrderStatus
    count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class ValueBucket:
    range: str
    count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class OrderBreakdown:
    total_orders: int
    by_status: tuple[StatusCount, ...]
    value_distribution: tuple[ValueBucket, ...]


# ═══════════════════════════════════════════════════════════════════════════════
# Ops
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class SellerSales(Op[SalesSummary, ShopError]):
    seller_id: UserId


@dataclass(frozen=True, slots=True)
class SellerRevenue(Op[RevenueSummary, ShopError]):
    """Twelve calendar months ending with the one containing ``now``."""

    seller_id: UserId
    now: datetime | None = None


@dataclass(frozen=True, slots=True)
class SellerProducts(Op[ProductStats, ShopError]):
    seller_id: UserId


@dataclass(frozen=True, slots=True)
class SellerCategories(Op[tuple[CategoryStats, ...], ShopError]):
    seller_id: UserId


@dataclass(frozen=True, slots=True)
class DashboardSummary(Op[Dashboard, ShopError]):
    sales: SellerSales
    revenue: SellerRevenue
    products: SellerProducts
    categories: SellerCategories

    @classmethod
    def for_seller(cls, seller_id: UserId, now: datetime | None = None) -> DashboardSummary:
        return cls(
            sales=SellerSales(seller_id),
            revenue=SellerRevenue(seller_id, now),
            products=SellerProducts(seller_id),
            categories=SellerCategories(seller_id),
        )


@dataclass(frozen=True, slots=True)
class OrderAnalytics(Op[OrderBreakdown, ShopError]):
    """Status and value breakdown of orders holding the seller's products.

    Unlike the money figures this includes cancelled orders.
    """

    seller_id: UserId


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def _seller_orders_stmt(seller_id: UserId, include_cancelled: bool = False):
    stmt = (
        select(D.OrderTable)
        .where(
            D.OrderTable.items.any(
                D.OrderItemTable.product.has(D.ProductTable.seller_id == seller_id)
            )
        )
        .order_by(D.OrderTable.created_at.desc())
    )
    if not include_cancelled:
        stmt = stmt.where(D.OrderTable.status != OrderStatus.CANCELLED.value)
    return stmt


def _seller_share(order: D.OrderTable, seller_id: UserId) -> int:
    return sum(
        item.unit_price * item.quantity
        for item in order.items
        if item.product.seller_id == seller_id
    )


def _month_start(year: int, month: int, offset: int) -> datetime:
    index = year * 12 + (month - 1) + offset
    return datetime(index // 12, index % 12 + 1, 1)


def percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


async def _orders(session: AsyncSession, seller_id: UserId) -> list[D.OrderTable]:
    return list((await session.scalars(_seller_orders_stmt(seller_id))).all())


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════

async def seller_sales(req: SellerSales, db: D.Database) -> Result[SalesSummary, ShopError]:
    async with db.session() as session:
        rows = await _orders(session, req.seller_id)
        orders = tuple(
            SellerOrder(
                id=row.id,
                customer=f"{row.user.first_name} {row.user.last_name}",
                email=row.user.email,
                total=row.total,
                seller_total=_seller_share(row, req.seller_id),
                status=OrderStatus(row.status),
                created_at=row.created_at,
                item_count=len(row.items),
            )
            for row in rows
        )
    return Ok(
        SalesSummary(
            total_sales=sum(o.seller_total for o in orders),
            order_count=len(orders),
            orders=orders,
        )
    )


async def seller_revenue(req: SellerRevenue, db: D.Database) -> Result[RevenueSummary, ShopError]:
    now = req.now or datetime.now()
    starts = [_month_start(now.year, now.month, offset) for offset in range(-11, 2)]

    async with db.session() as session:
        rows = (
            await session.scalars(
                _seller_orders_stmt(req.seller_id).where(D.OrderTable.created_at >= starts[0])
            )
        ).all()
        dated = [(row.created_at, _seller_share(row, req.seller_id)) for row in rows]

    monthly = tuple(
        MonthlyRevenue(
            month=start.strftime("%b %Y"),
            revenue=sum(amount for at, amount in dated if start <= at < end),
        )
        for start, end in zip(starts, starts[1:])
    )
    current = monthly[-1].revenue
    previous = monthly[-2].revenue
    change = 100.0 if previous == 0 else (current - previous) / previous * 100

    return Ok(
        RevenueSummary(
            current_month=current,
            previous_month=previous,
            percentage_change=round(change, 2),
            monthly=monthly,
        )
    )


async def seller_products(req: SellerProducts, db: D.Database) -> Result[ProductStats, ShopError]:
    async with db.session() as session:
        products = (
            await session.scalars(
                select(D.ProductTable)
                .where(D.ProductTable.seller_id == req.seller_id)
                .order_by(D.ProductTable.created_at.desc())
            )
        ).all()

        sold = {
            product_id: (quantity, revenue)
            for product_id, quantity, revenue in await session.execute(
                select(
                    D.OrderItemTable.product_id,
                    func.sum(D.OrderItemTable.quantity),
                    func.sum(D.OrderItemTable.quantity * D.OrderItemTable.unit_price),
                )
                .join(D.OrderTable, D.OrderTable.id == D.OrderItemTable.order_id)
                .join(D.ProductTable, D.ProductTable.id == D.OrderItemTable.product_id)
                .where(
                    D.ProductTable.seller_id == req.seller_id,
                    D.OrderTable.status != OrderStatus.CANCELLED.value,
                )
                .group_by(D.OrderItemTable.product_id)
            )
        }
        carts = {
            product_id: count
            for product_id, count in await session.execute(
                select(D.CartItemTable.product_id, func.count(D.CartItemTable.id))
                .join(D.ProductTable, D.ProductTable.id == D.CartItemTable.product_id)
                .where(D.ProductTable.seller_id == req.seller_id)
                .group_by(D.CartItemTable.product_id)
            )
        }

        performance = tuple(
            ProductPerformance(
                product=D.to_product(p),
                total_sold=int(sold.get(p.id, (0, 0))[0]),
                revenue=int(sold.get(p.id, (0, 0))[1]),
                in_carts=carts.get(p.id, 0),
            )
            for p in products
        )

    return Ok(
        ProductStats(
            products=performance,
            total=len(performance),
            featured=sum(1 for p in performance if p.product.featured),
            out_of_stock=sum(1 for p in performance if p.product.stock == 0),
            low_stock=sum(1 for p in performance if 0 < p.product.stock < LOW_STOCK),
        )
    )


async def seller_categories(
    req: SellerCategories, db: D.Database
) -> Result[tuple[CategoryStats, ...], ShopError]:
    async with db.session() as session:
        categories = (
            await session.scalars(select(D.CategoryTable).order_by(D.CategoryTable.name))
        ).all()
        products = (await session.scalars(select(D.ProductTable))).all()

    stats = []
    for category in categories:
        in_category = [p for p in products if p.category_id == category.id]
        mine = [p for p in in_category if p.seller_id == req.seller_id]
        stats.append(
            CategoryStats(
                category=D.to_category(category),
                seller_product_count=len(mine),
                total_product_count=len(in_category),
                inventory_value=sum(p.price * p.stock for p in mine),
            )
        )
    return Ok(tuple(stats))


async def dashboard_summary(
    req: DashboardSummary,
    sales: SellerSales,
    revenue: SellerRevenue,
    products: SellerProducts,
    categories: SellerCategories,
) -> Result[Dashboard, ShopError]:
    # dependencies already resolved by the runner; awaiting is instant
    results = (await sales, await revenue, await products, await categories)
    for result in results:
        match result:
            case Error(e):
                return Error(e)

    match results:
        case (Ok(s), Ok(r), Ok(p), Ok(c)):
            return Ok(
                Dashboard(
                    sales=s,
                    revenue=r,
                    products=p,
                    categories=c,
                    recent_orders=s.orders[:RECENT_ORDERS],
                )
            )
        case _:
            raise AssertionError("unreachable")


async def order_analytics(req: OrderAnalytics, db: D.Database) -> Result[OrderBreakdown, ShopError]:
    async with db.session() as session:
        rows = (
            await session.scalars(_seller_orders_stmt(req.seller_id, include_cancelled=True))
        ).all()
        orders = [(OrderStatus(row.status), row.total) for row in rows]

    total = len(orders)
    statuses = Counter(status for status, _ in orders)
    by_status = tuple(
        StatusCount(status=s, count=statuses[s], percentage=percentage(statuses[s], total))
        for s in OrderStatus
    )

    buckets = []
    for label, low, high in VALUE_BUCKETS:
        count = sum(1 for _, amount in orders if amount >= low and (high is None or amount < high))
        buckets.append(ValueBucket(range=label, count=count, percentage=percentage(count, total)))

    return Ok(
        OrderBreakdown(total_orders=total, by_status=by_status, value_distribution=tuple(buckets))
    )


handlers = (
    ops()
    .on(SellerSales, seller_sales)
    .on(SellerRevenue, seller_revenue)
    .on(SellerProducts, seller_products)
    .on(SellerCategories, seller_categories)
    .on(DashboardSummary, dashboard_summary)
    .on(OrderAnalytics, order_analytics)
)


__all__ = (
    "LOW_STOCK",
    "VALUE_BUCKETS",
    "SellerOrder",
    "SalesSummary",
    "MonthlyRevenue",
    "RevenueSummary",
    "ProductPerformance",
    "ProductStats",
    "CategoryStats",
    "Dashboard",
    "StatusCount",
    "ValueBucket",
    "OrderBreakdown",
    "SellerSales",
    "SellerRevenue",
    "SellerProducts",
    "SellerCategories",
    "DashboardSummary",
    "OrderAnalytics",
    "percentage",
    "handlers",
)
