"""
Wire models.

Requests expose ``to_domain(...)`` returning the op to run; responses expose
``from_domain(...)`` building themselves from the op's value. JSON keys are
camelCase; money is integer cents.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront import analytics as A
from storefront import auth, cart, catalog, orders
from storefront.checkout import CheckoutPreview, PlaceOrder
from storefront.domain import (
    AuthSession,
    Cart,
    CartLine,
    Category,
    CategoryDetail,
    Order,
    OrderItem,
    Principal,
    Product,
    ShippingInfo,
    User,
)


class Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════

class RegisterIn(Model):
    email: str = ""
    password: str = ""
    first_name: str = ""
    last_name: str = ""

    def to_domain(self) -> auth.Register:
        return auth.Register(self.email, self.password, self.first_name, self.last_name)


class LoginIn(Model):
    email: str = ""
    password: str = ""

    def to_domain(self) -> auth.Login:
        return auth.Login(self.email, self.password)

    def to_admin_domain(self) -> auth.AdminLogin:
        return auth.AdminLogin(self.email, self.password)


class RegisterAdminIn(RegisterIn):
    admin_code: str = ""

    def to_domain(self) -> auth.RegisterAdmin:  # type: ignore[override]
        return auth.RegisterAdmin(
            self.email, self.password, self.first_name, self.last_name, self.admin_code
        )


class UserOut(Model):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str

    @classmethod
    def from_domain(cls, dom: User) -> UserOut:
        return cls(
            id=dom.id,
            email=dom.email,
            first_name=dom.first_name,
            last_name=dom.last_name,
            role=dom.role.value,
        )


class SessionOut(Model):
    success: bool = True
    user: UserOut
    token: str
    expires_at: datetime

    @classmethod
    def from_domain(cls, dom: AuthSession) -> SessionOut:
        return cls(user=UserOut.from_domain(dom.user), token=dom.token, expires_at=dom.expires_at)


class MeOut(Model):
    user: UserOut

    @classmethod
    def from_domain(cls, dom: User) -> MeOut:
        return cls(user=UserOut.from_domain(dom))


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════

class CategoryOut(Model):
    id: str
    name: str
    slug: str
    description: str | None

    @classmethod
    def from_domain(cls, dom: Category) -> CategoryOut:
        return cls(id=dom.id, name=dom.name, slug=dom.slug, description=dom.description)


class ProductOut(Model):
    id: str
    name: str
    description: str
    price: int
    image: str | None
    stock: int
    featured: bool
    slug: str
    category_id: str
    seller_id: str | None
    category: CategoryOut | None = None

    @classmethod
    def from_domain(cls, dom: Product) -> ProductOut:
        return cls(
            id=dom.id,
            name=dom.name,
            description=dom.description,
            price=dom.price,
            image=dom.image,
            stock=dom.stock,
            featured=dom.featured,
            slug=dom.slug,
            category_id=dom.category_id,
            seller_id=dom.seller_id,
            category=CategoryOut.from_domain(dom.category) if dom.category else None,
        )


class ProductListOut(Model):
    products: list[ProductOut]
    total: int

    @classmethod
    def from_domain(cls, dom: tuple[Product, ...]) -> ProductListOut:
        return cls(products=[ProductOut.from_domain(p) for p in dom], total=len(dom))


class CategoryListOut(Model):
    categories: list[CategoryOut]
    total: int

    @classmethod
    def from_domain(cls, dom: tuple[Category, ...]) -> CategoryListOut:
        return cls(categories=[CategoryOut.from_domain(c) for c in dom], total=len(dom))


class CategoryDetailOut(Model):
    category: CategoryOut
    products: list[ProductOut]

    @classmethod
    def from_domain(cls, dom: CategoryDetail) -> CategoryDetailOut:
        return cls(
            category=CategoryOut.from_domain(dom.category),
            products=[ProductOut.from_domain(p) for p in dom.products],
        )


class ProductIn(Model):
    name: str
    description: str = ""
    price: int = Field(ge=0)
    stock: int = Field(ge=0)
    category_id: str
    image: str | None = None
    featured: bool = False
    slug: str | None = None

    def to_domain(self, actor: Principal) -> catalog.CreateProduct:
        return catalog.CreateProduct(
            actor=actor,
            name=self.name,
            description=self.description,
            price=self.price,
            stock=self.stock,
            category_id=self.category_id,
            image=self.image,
            featured=self.featured,
            slug=self.slug,
        )


class ProductPatchIn(Model):
    name: str | None = None
    description: str | None = None
    price: int | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    category_id: str | None = None
    image: str | None = None
    featured: bool | None = None
    slug: str | None = None

    def to_domain(self, actor: Principal, product_id: str) -> catalog.UpdateProduct:
        return catalog.UpdateProduct(
            actor=actor,
            product_id=product_id,
            name=self.name,
            description=self.description,
            price=self.price,
            stock=self.stock,
            category_id=self.category_id,
            image=self.image,
            featured=self.featured,
            slug=self.slug,
        )


class CategoryIn(Model):
    name: str
    description: str | None = None
    slug: str | None = None

    def to_domain(self, actor: Principal) -> catalog.CreateCategory:
        return catalog.CreateCategory(
            actor=actor, name=self.name, description=self.description, slug=self.slug
        )


class CategoryPatchIn(Model):
    name: str | None = None
    description: str | None = None
    slug: str | None = None

    def to_domain(self, actor: Principal, category_id: str) -> catalog.UpdateCategory:
        return catalog.UpdateCategory(
            actor=actor,
            category_id=category_id,
            name=self.name,
            description=self.description,
            slug=self.slug,
        )


class DeletedOut(Model):
    success: bool = True
    message: str
    deleted_id: str


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════

class CartLineOut(Model):
    product: ProductOut
    quantity: int
    subtotal: int

    @classmethod
    def from_domain(cls, dom: CartLine) -> CartLineOut:
        return cls(
            product=ProductOut.from_domain(dom.product),
            quantity=dom.quantity,
            subtotal=dom.subtotal,
        )


class CartOut(Model):
    success: bool = True
    items: list[CartLineOut]
    total_items: int
    total_price: int
    item_count: int

    @classmethod
    def from_domain(cls, dom: Cart) -> CartOut:
        return cls(
            items=[CartLineOut.from_domain(line) for line in dom.lines],
            total_items=dom.total_items,
            total_price=dom.total_price,
            item_count=dom.item_count,
        )


class AddToCartIn(Model):
    product_id: str = ""
    quantity: int = 1
    action: Literal["add", "set"] = "add"

    def to_domain(self, actor: Principal) -> cart.AddToCart:
        return cart.AddToCart(actor.user_id, self.product_id, self.quantity, self.action)


class UpdateCartIn(Model):
    product_id: str = ""
    quantity: int

    def to_domain(self, actor: Principal) -> cart.UpdateCartItem:
        return cart.UpdateCartItem(actor.user_id, self.product_id, self.quantity)


class ClearedOut(Model):
    success: bool = True
    message: str
    deleted_count: int


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout & orders
# ═══════════════════════════════════════════════════════════════════════════════

class ShippingInfoIn(Model):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    def to_domain(self) -> ShippingInfo:
        return ShippingInfo(
            full_name=self.full_name,
            email=self.email,
            phone=self.phone,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
        )


class ShippingInfoOut(ShippingInfoIn):
    @classmethod
    def from_domain(cls, dom: ShippingInfo) -> ShippingInfoOut:
        return cls(
            full_name=dom.full_name,
            email=dom.email,
            phone=dom.phone,
            address=dom.address,
            city=dom.city,
            state=dom.state,
            zip_code=dom.zip_code,
        )


class PlaceOrderIn(Model):
    shipping_info: ShippingInfoIn

    def to_domain(self, actor: Principal, idempotency_key: str | None) -> PlaceOrder:
        return PlaceOrder(
            user_id=actor.user_id,
            shipping=self.shipping_info.to_domain(),
            idempotency_key=idempotency_key or None,
        )


class PreviewOut(Model):
    cart: CartOut
    subtotal: int
    tax: int
    shipping: int
    total: int

    @classmethod
    def from_domain(cls, dom: CheckoutPreview) -> PreviewOut:
        return cls(
            cart=CartOut.from_domain(dom.cart),
            subtotal=dom.quote.subtotal,
            tax=dom.quote.tax,
            shipping=dom.quote.shipping,
            total=dom.quote.total,
        )


class OrderItemOut(Model):
    product_id: str
    name: str
    slug: str
    quantity: int
    price: int
    subtotal: int

    @classmethod
    def from_domain(cls, dom: OrderItem) -> OrderItemOut:
        return cls(
            product_id=dom.product_id,
            name=dom.product_name,
            slug=dom.product_slug,
            quantity=dom.quantity,
            price=dom.unit_price,
            subtotal=dom.subtotal,
        )


class OrderOut(Model):
    id: str
    user_id: str
    status: str
    shipping_info: ShippingInfoOut
    items: list[OrderItemOut]
    subtotal: int
    tax: int
    shipping: int
    total: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, dom: Order) -> OrderOut:
        return cls(
            id=dom.id,
            user_id=dom.user_id,
            status=dom.status.value,
            shipping_info=ShippingInfoOut.from_domain(dom.shipping),
            items=[OrderItemOut.from_domain(i) for i in dom.items],
            subtotal=dom.subtotal,
            tax=dom.tax,
            shipping=dom.shipping_cost,
            total=dom.total,
            created_at=dom.created_at,
            updated_at=dom.updated_at,
        )


class OrderListOut(Model):
    orders: list[OrderOut]
    total: int

    @classmethod
    def from_domain(cls, dom: tuple[Order, ...]) -> OrderListOut:
        return cls(orders=[OrderOut.from_domain(o) for o in dom], total=len(dom))


class OrderStatusIn(Model):
    status: str = ""

    def to_domain(self, actor: Principal, order_id: str) -> orders.UpdateOrderStatus:
        return orders.UpdateOrderStatus(actor=actor, order_id=order_id, status=self.status)


# ═══════════════════════════════════════════════════════════════════════════════
# Analytics
# ═══════════════════════════════════════════════════════════════════════════════

class SellerOrderOut(Model):
    id: str
    customer: str
    email: str
    total: int
    seller_total: int
    status: str
    date: datetime
    item_count: int

    @classmethod
    def from_domain(cls, dom: A.SellerOrder) -> SellerOrderOut:
        return cls(
            id=dom.id,
            customer=dom.customer,
            email=dom.email,
            total=dom.total,
            seller_total=dom.seller_total,
            status=dom.status.value,
            date=dom.created_at,
            item_count=dom.item_count,
        )


class SalesOut(Model):
    total_sales: int
    order_count: int
    orders: list[SellerOrderOut]

    @classmethod
    def from_domain(cls, dom: A.SalesSummary) -> SalesOut:
        return cls(
            total_sales=dom.total_sales,
            order_count=dom.order_count,
            orders=[SellerOrderOut.from_domain(o) for o in dom.orders],
        )


class MonthOut(Model):
    month: str
    revenue: int


class RevenueOut(Model):
    current_month: int
    previous_month: int
    percentage_change: float
    chart_data: list[MonthOut]

    @classmethod
    def from_domain(cls, dom: A.RevenueSummary) -> RevenueOut:
        return cls(
            current_month=dom.current_month,
            previous_month=dom.previous_month,
            percentage_change=dom.percentage_change,
            chart_data=[MonthOut(month=m.month, revenue=m.revenue) for m in dom.monthly],
        )


class ProductStatsOut(Model):
    product: ProductOut
    total_sold: int
    revenue: int
    in_carts: int


class SellerProductsOut(Model):
    products: list[ProductStatsOut]
    total_products: int
    featured_count: int
    out_of_stock: int
    low_stock: int

    @classmethod
    def from_domain(cls, dom: A.ProductStats) -> SellerProductsOut:
        return cls(
            products=[
                ProductStatsOut(
                    product=ProductOut.from_domain(p.product),
                    total_sold=p.total_sold,
                    revenue=p.revenue,
                    in_carts=p.in_carts,
                )
                for p in dom.products
            ],
            total_products=dom.total,
            featured_count=dom.featured,
            out_of_stock=dom.out_of_stock,
            low_stock=dom.low_stock,
        )


class CategoryStatsOut(Model):
    category: CategoryOut
    admin_product_count: int
    total_product_count: int
    total_value: int


class SellerCategoriesOut(Model):
    categories: list[CategoryStatsOut]
    total_categories: int

    @classmethod
    def from_domain(cls, dom: tuple[A.CategoryStats, ...]) -> SellerCategoriesOut:
        return cls(
            categories=[
                CategoryStatsOut(
                    category=CategoryOut.from_domain(c.category),
                    admin_product_count=c.seller_product_count,
                    total_product_count=c.total_product_count,
                    total_value=c.inventory_value,
                )
                for c in dom
            ],
            total_categories=len(dom),
        )


class DashboardOut(Model):
    sales: SalesOut
    revenue: RevenueOut
    products: SellerProductsOut
    categories: SellerCategoriesOut
    recent_orders: list[SellerOrderOut]

    @classmethod
    def from_domain(cls, dom: A.Dashboard) -> DashboardOut:
        return cls(
            sales=SalesOut.from_domain(dom.sales),
            revenue=RevenueOut.from_domain(dom.revenue),
            products=SellerProductsOut.from_domain(dom.products),
            categories=SellerCategoriesOut.from_domain(dom.categories),
            recent_orders=[SellerOrderOut.from_domain(o) for o in dom.recent_orders],
        )


class StatusCountOut(Model):
    status: str
    count: int
    percentage: float


class BucketOut(Model):
    range: str
    count: int
    percentage: float


class OrderAnalyticsOut(Model):
    total_orders: int
    orders_by_status: list[StatusCountOut]
    order_value_distribution: list[BucketOut]

    @classmethod
    def from_domain(cls, dom: A.OrderBreakdown) -> OrderAnalyticsOut:
        return cls(
            total_orders=dom.total_orders,
            orders_by_status=[
                StatusCountOut(status=s.status.value, count=s.count, percentage=s.percentage)
                for s in dom.by_status
            ],
            order_value_distribution=[
                BucketOut(range=b.range, count=b.count, percentage=b.percentage)
                for b in dom.value_distribution
            ],
        )
