"""
Database layer — SQLAlchemy async models and session scopes.

    from storefront import db as D

    database = await D.create_database("sqlite+aiosqlite:///shop.db")
    async with database.transaction() as session:
        session.add(D.CategoryTable(name="Books", slug="books"))
"""

from storefront.db._tables import (
    new_id,
    Base,
    TimestampMixin,
    UserTable,
    CategoryTable,
    ProductTable,
    CartItemTable,
    OrderTable,
    OrderItemTable,
)
from storefront.db._database import Database, create_engine, create_database
from storefront.db._mappers import (
    to_user,
    to_category,
    to_product,
    to_cart_line,
    to_order,
)

__all__ = (
    # Tables
    "new_id",
    "Base",
    "TimestampMixin",
    "UserTable",
    "CategoryTable",
    "ProductTable",
    "CartItemTable",
    "OrderTable",
    "OrderItemTable",
    # Engine
    "Database",
    "create_engine",
    "create_database",
    # Mapping
    "to_user",
    "to_category",
    "to_product",
    "to_cart_line",
    "to_order",
)
