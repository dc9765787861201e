"""Public catalog, cart, checkout and order routes."""

from typing import Annotated

from fastapi import APIRouter, Header, Query, Response, status

from storefront import cart, catalog, orders
from storefront.api._deps import RunnerDep, UserDep, execute
from storefront.api._schemas import (
    AddToCartIn,
    CartOut,
    CategoryDetailOut,
    CategoryListOut,
    ClearedOut,
    DeletedOut,
    OrderListOut,
    OrderOut,
    OrderStatusIn,
    PlaceOrderIn,
    PreviewOut,
    ProductListOut,
    ProductOut,
    UpdateCartIn,
)
from storefront.checkout import PreviewCheckout

router = APIRouter(prefix="/api")


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/products", tags=["catalog"])
async def list_products(
    runner: RunnerDep,
    category: str | None = None,
    featured: bool | None = None,
    search: str | None = None,
    limit: int | None = None,
) -> ProductListOut:
    op = catalog.ListProducts(category=category, featured=featured, search=search, limit=limit)
    return ProductListOut.from_domain(await execute(runner, op))


@router.get("/products/featured", tags=["catalog"])
async def featured_products(runner: RunnerDep) -> ProductListOut:
    return ProductListOut.from_domain(await execute(runner, catalog.FeaturedProducts()))


@router.get("/products/{slug}", tags=["catalog"])
async def get_product(slug: str, runner: RunnerDep) -> ProductOut:
    return ProductOut.from_domain(await execute(runner, catalog.GetProduct(slug)))


@router.get("/categories", tags=["catalog"])
async def list_categories(runner: RunnerDep) -> CategoryListOut:
    return CategoryListOut.from_domain(await execute(runner, catalog.ListCategories()))


@router.get("/categories/{slug}", tags=["catalog"])
async def get_category(slug: str, runner: RunnerDep) -> CategoryDetailOut:
    return CategoryDetailOut.from_domain(await execute(runner, catalog.GetCategory(slug)))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/cart", tags=["cart"])
async def get_cart(principal: UserDep, runner: RunnerDep) -> CartOut:
    return CartOut.from_domain(await execute(runner, cart.GetCart(principal.user_id)))


@router.post("/cart", tags=["cart"])
async def add_to_cart(body: AddToCartIn, principal: UserDep, runner: RunnerDep) -> CartOut:
    return CartOut.from_domain(await execute(runner, body.to_domain(principal)))


@router.patch("/cart", tags=["cart"])
async def update_cart(body: UpdateCartIn, principal: UserDep, runner: RunnerDep) -> CartOut:
    return CartOut.from_domain(await execute(runner, body.to_domain(principal)))


@router.delete("/cart", tags=["cart"])
async def delete_from_cart(
    principal: UserDep,
    runner: RunnerDep,
    product_id: Annotated[str | None, Query(alias="productId")] = None,
) -> CartOut | ClearedOut:
    if product_id:
        op = cart.RemoveFromCart(principal.user_id, product_id)
        return CartOut.from_domain(await execute(runner, op))
    count = await execute(runner, cart.ClearCart(principal.user_id))
    return ClearedOut(message="Cart cleared", deleted_count=count)


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout & orders
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/checkout/preview", tags=["checkout"])
async def preview_checkout(principal: UserDep, runner: RunnerDep) -> PreviewOut:
    return PreviewOut.from_domain(await execute(runner, PreviewCheckout(principal.user_id)))


@router.post("/orders", status_code=status.HTTP_201_CREATED, tags=["orders"])
async def place_order(
    body: PlaceOrderIn,
    response: Response,
    principal: UserDep,
    runner: RunnerDep,
    idempotency_key: Annotated[str | None, Header(alias="Idempotency-Key")] = None,
) -> OrderOut:
    placed = await execute(runner, body.to_domain(principal, idempotency_key))
    if placed.replayed:
        response.status_code = status.HTTP_200_OK
    return OrderOut.from_domain(placed.order)


@router.get("/orders", tags=["orders"])
async def list_orders(principal: UserDep, runner: RunnerDep) -> OrderListOut:
    return OrderListOut.from_domain(await execute(runner, orders.ListOrders(principal)))


@router.get("/orders/{order_id}", tags=["orders"])
async def get_order(order_id: str, principal: UserDep, runner: RunnerDep) -> OrderOut:
    return OrderOut.from_domain(await execute(runner, orders.GetOrder(principal, order_id)))


@router.patch("/orders/{order_id}", tags=["orders"])
async def update_order_status(
    order_id: str, body: OrderStatusIn, principal: UserDep, runner: RunnerDep
) -> OrderOut:
    return OrderOut.from_domain(await execute(runner, body.to_domain(principal, order_id)))


@router.delete("/orders/{order_id}", tags=["orders"])
async def delete_order(order_id: str, principal: UserDep, runner: RunnerDep) -> DeletedOut:
    deleted = await execute(runner, orders.DeleteOrder(principal, order_id))
    return DeletedOut(message="Order deleted successfully", deleted_id=deleted)
