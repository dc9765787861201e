"""Row → domain mapping."""

from storefront.db._tables import (
    CartItemTable,
    CategoryTable,
    OrderTable,
    ProductTable,
    UserTable,
)
from storefront.domain import (
    CartLine,
    Category,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Role,
    ShippingInfo,
    User,
)


def to_user(row: UserTable) -> User:
    return User(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        role=Role(row.role),
        created_at=row.created_at,
    )


def to_category(row: CategoryTable) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
    )


def to_product(row: ProductTable) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price=row.price,
        image=row.image,
        stock=row.stock,
        featured=row.featured,
        slug=row.slug,
        category_id=row.category_id,
        seller_id=row.seller_id,
        category=to_category(row.category) if row.category is not None else None,
    )


def to_cart_line(row: CartItemTable) -> CartLine:
    return CartLine(product=to_product(row.product), quantity=row.quantity)


def to_order(row: OrderTable) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        status=OrderStatus(row.status),
        shipping=ShippingInfo(
            full_name=row.shipping_name,
            email=row.shipping_email,
            phone=row.shipping_phone,
            address=row.shipping_address,
            city=row.shipping_city,
            state=row.shipping_state,
            zip_code=row.shipping_zip,
        ),
        items=tuple(
            OrderItem(
                product_id=item.product_id,
                product_name=item.product.name,
                product_slug=item.product.slug,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in row.items
        ),
        subtotal=row.subtotal,
        tax=row.tax,
        shipping_cost=row.shipping_cost,
        total=row.total,
        created_at=row.created_at,
        updated_at=row.updated_at,
        idempotency_key=row.idempotency_key,
    )


__all__ = ("to_user", "to_category", "to_product", "to_cart_line", "to_order")
