"""Back-office routes. Everything here requires an admin token."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from storefront import analytics, catalog, orders
from storefront.api._deps import AdminDep, RunnerDep, execute
from storefront.api._schemas import (
    CategoryIn,
    CategoryOut,
    CategoryPatchIn,
    DashboardOut,
    DeletedOut,
    OrderAnalyticsOut,
    OrderListOut,
    ProductIn,
    ProductOut,
    ProductPatchIn,
    RevenueOut,
    SalesOut,
    SellerCategoriesOut,
    SellerProductsOut,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/products")
async def seller_products(admin: AdminDep, runner: RunnerDep) -> SellerProductsOut:
    stats = await execute(runner, analytics.SellerProducts(admin.user_id))
    return SellerProductsOut.from_domain(stats)


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(body: ProductIn, admin: AdminDep, runner: RunnerDep) -> ProductOut:
    return ProductOut.from_domain(await execute(runner, body.to_domain(admin)))


@router.patch("/products/{product_id}")
async def update_product(
    product_id: str, body: ProductPatchIn, admin: AdminDep, runner: RunnerDep
) -> ProductOut:
    return ProductOut.from_domain(await execute(runner, body.to_domain(admin, product_id)))


@router.delete("/products/{product_id}")
async def delete_product(product_id: str, admin: AdminDep, runner: RunnerDep) -> DeletedOut:
    deleted = await execute(runner, catalog.DeleteProduct(admin, product_id))
    return DeletedOut(message="Product deleted", deleted_id=deleted)


# ═══════════════════════════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/categories")
async def seller_categories(admin: AdminDep, runner: RunnerDep) -> SellerCategoriesOut:
    stats = await execute(runner, analytics.SellerCategories(admin.user_id))
    return SellerCategoriesOut.from_domain(stats)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryIn, admin: AdminDep, runner: RunnerDep) -> CategoryOut:
    return CategoryOut.from_domain(await execute(runner, body.to_domain(admin)))


@router.patch("/categories/{category_id}")
async def update_category(
    category_id: str, body: CategoryPatchIn, admin: AdminDep, runner: RunnerDep
) -> CategoryOut:
    return CategoryOut.from_domain(await execute(runner, body.to_domain(admin, category_id)))


@router.delete("/categories/{category_id}")
async def delete_category(category_id: str, admin: AdminDep, runner: RunnerDep) -> DeletedOut:
    deleted = await execute(runner, catalog.DeleteCategory(admin, category_id))
    return DeletedOut(message="Category deleted", deleted_id=deleted)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders & analytics
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/orders")
async def all_orders(
    admin: AdminDep,
    runner: RunnerDep,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> OrderListOut:
    op = orders.AdminListOrders(admin, status_filter)
    return OrderListOut.from_domain(await execute(runner, op))


@router.get("/analytics/overview")
async def overview(admin: AdminDep, runner: RunnerDep) -> DashboardOut:
    summary = await execute(runner, analytics.DashboardSummary.for_seller(admin.user_id))
    return DashboardOut.from_domain(summary)


@router.get("/analytics/sales")
async def sales(admin: AdminDep, runner: RunnerDep) -> SalesOut:
    return SalesOut.from_domain(await execute(runner, analytics.SellerSales(admin.user_id)))


@router.get("/analytics/revenue")
async def revenue(admin: AdminDep, runner: RunnerDep) -> RevenueOut:
    return RevenueOut.from_domain(await execute(runner, analytics.SellerRevenue(admin.user_id)))


@router.get("/analytics/orders")
async def order_analytics(admin: AdminDep, runner: RunnerDep) -> OrderAnalyticsOut:
    breakdown = await execute(runner, analytics.OrderAnalytics(admin.user_id))
    return OrderAnalyticsOut.from_domain(breakdown)
