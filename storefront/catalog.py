"""
Catalog — products and categories, public reads and admin writes.

Product-by-slug, category-by-slug and the category list are served through
``CatalogCache``. Anything that changes a product (admin edits, checkout,
cancellation) must call ``CatalogCache.invalidate_products``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from kungfu import Error, LazyCoroResult, Ok, Result
from sqlalchemy import exists, or_, select
from sqlalchemy.exc import IntegrityError

from storefront import db as D
from storefront.cache import LocalTier, ReadThrough, cache
from storefront.domain import Category, CategoryDetail, Principal, Product
from storefront.errors import Errors, ShopError
from storefront.lift import from_optional
from storefront.ops import Op, ops

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """``"Blue  Coffee Mug"`` → ``"blue-coffee-mug"``."""
    return re.sub(r"\s+", "-", name.strip().lower())


# ═══════════════════════════════════════════════════════════════════════════════
# Cache
# ═══════════════════════════════════════════════════════════════════════════════

class CatalogCache:
    """Read-through LRU over the hot catalog lookups of one database."""

    def __init__(self, db: D.Database, max_size: int = 500) -> None:
        self._db = db
        self.products: ReadThrough[str, Product, ShopError] = (
            cache(lambda slug: f"product:{slug}", self._fetch_product)
            .tier(LocalTier[Product](max_size=max_size))
            .build()
        )
        self.categories: ReadThrough[str, CategoryDetail, ShopError] = (
            cache(lambda slug: f"category:{slug}", self._fetch_category)
            .tier(LocalTier[CategoryDetail](max_size=max_size))
            .build()
        )
        self.category_list: ReadThrough[None, tuple[Category, ...], ShopError] = (
            cache(lambda _: "categories", self._fetch_category_list)
            .tier(LocalTier[tuple[Category, ...]](max_size=1))
            .build()
        )

    def _fetch_product(self, slug: str) -> LazyCoroResult[Product, ShopError]:
        async def fetch() -> Result[Product, ShopError]:
            async with self._db.session() as session:
                row = await session.scalar(select(D.ProductTable).where(D.ProductTable.slug == slug))
                match from_optional(row, lambda: Errors.not_found("Product")):
                    case Ok(found):
                        return Ok(D.to_product(found))
                    case Error(e):
                        return Error(e)

        return LazyCoroResult(fetch)

    def _fetch_category(self, slug: str) -> LazyCoroResult[CategoryDetail, ShopError]:
        async def fetch() -> Result[CategoryDetail, ShopError]:
            async with self._db.session() as session:
                row = await session.scalar(
                    select(D.CategoryTable).where(D.CategoryTable.slug == slug)
                )
                if row is None:
                    return Error(Errors.not_found("Category"))
                products = await session.scalars(
                    select(D.ProductTable)
                    .where(D.ProductTable.category_id == row.id)
                    .order_by(D.ProductTable.created_at.desc())
                )
                return Ok(
                    CategoryDetail(
                        category=D.to_category(row),
                        products=tuple(D.to_product(p) for p in products),
                    )
                )

        return LazyCoroResult(fetch)

    def _fetch_category_list(self, _: None) -> LazyCoroResult[tuple[Category, ...], ShopError]:
        async def fetch() -> Result[tuple[Category, ...], ShopError]:
            async with self._db.session() as session:
                rows = await session.scalars(select(D.CategoryTable).order_by(D.CategoryTable.name))
                return Ok(tuple(D.to_category(r) for r in rows))

        return LazyCoroResult(fetch)

    async def invalidate_products(self) -> None:
        await self.products.invalidate_pattern("product:*")
        await self.categories.invalidate_pattern("category:*")

    async def invalidate_categories(self) -> None:
        await self.category_list.invalidate(None)
        await self.invalidate_products()


# ═══════════════════════════════════════════════════════════════════════════════
# Public reads
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class ListProducts(Op[tuple[Product, ...], ShopError]):
    """``category`` matches a category id or slug; ``search`` is case-insensitive."""

    category: str | None = None
    featured: bool | None = None
    search: str | None = None
    limit: int | None = None


@dataclass(frozen=True, slots=True)
class GetProduct(Op[Product, ShopError]):
    slug: str


@dataclass(frozen=True, slots=True)
class FeaturedProducts(Op[tuple[Product, ...], ShopError]):
    """Featured products that are in stock."""


@dataclass(frozen=True, slots=True)
class ListCategories(Op[tuple[Category, ...], ShopError]):
    pass


@dataclass(frozen=True, slots=True)
class GetCategory(Op[CategoryDetail, ShopError]):
    slug: str


async def list_products(req: ListProducts, db: D.Database) -> Result[tuple[Product, ...], ShopError]:
    if req.limit is not None and req.limit < 1:
        return Error(Errors.invalid("limit must be at least 1"))

    stmt = select(D.ProductTable).order_by(D.ProductTable.created_at.desc(), D.ProductTable.name)
    if req.category:
        stmt = stmt.join(D.ProductTable.category).where(
            or_(D.ProductTable.category_id == req.category, D.CategoryTable.slug == req.category)
        )
    if req.featured:
        stmt = stmt.where(D.ProductTable.featured.is_(True))
    if req.search:
        term = req.search.strip()
        stmt = stmt.where(
            or_(
                D.ProductTable.name.icontains(term, autoescape=True),
                D.ProductTable.description.icontains(term, autoescape=True),
            )
        )
    if req.limit is not None:
        stmt = stmt.limit(req.limit)

    async with db.session() as session:
        rows = await session.scalars(stmt)
        return Ok(tuple(D.to_product(r) for r in rows))


async def get_product(req: GetProduct, catalog: CatalogCache) -> Result[Product, ShopError]:
    match await catalog.products.get(req.slug):
        case Ok(hit):
            return Ok(hit.value)
        case Error(e):
            return Error(e)


async def featured_products(
    req: FeaturedProducts, db: D.Database
) -> Result[tuple[Product, ...], ShopError]:
    async with db.session() as session:
        rows = await session.scalars(
            select(D.ProductTable)
            .where(D.ProductTable.featured.is_(True), D.ProductTable.stock > 0)
            .order_by(D.ProductTable.created_at.desc())
        )
        return Ok(tuple(D.to_product(r) for r in rows))


async def list_categories(
    req: ListCategories, catalog: CatalogCache
) -> Result[tuple[Category, ...], ShopError]:
    match await catalog.category_list.get(None):
        case Ok(hit):
            return Ok(hit.value)
        case Error(e):
            return Error(e)


async def get_category(req: GetCategory, catalog: CatalogCache) -> Result[CategoryDetail, ShopError]:
    match await catalog.categories.get(req.slug):
        case Ok(hit):
            return Ok(hit.value)
        case Error(e):
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Admin writes
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class CreateProduct(Op[Product, ShopError]):
    actor: Principal
    name: str
    description: str
    price: int
    stock: int
    category_id: str
    image: str | None = None
    featured: bool = False
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateProduct(Op[Product, ShopError]):
    """Fields left as None are unchanged."""

    actor: Principal
    product_id: str
    name: str | None = None
    description: str | None = None
    price: int | None = None
    stock: int | None = None
    category_id: str | None = None
    image: str | None = None
    featured: bool | None = None
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteProduct(Op[str, ShopError]):
    actor: Principal
    product_id: str


@dataclass(frozen=True, slots=True)
class CreateCategory(Op[Category, ShopError]):
    actor: Principal
    name: str
    description: str | None = None
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateCategory(Op[Category, ShopError]):
    actor: Principal
    category_id: str
    name: str | None = None
    description: str | None = None
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteCategory(Op[str, ShopError]):
    actor: Principal
    category_id: str


def _check_product_values(
    name: str | None, price: int | None, stock: int | None
) -> ShopError | None:
    if name is not None and not name.strip():
        return Errors.invalid("Product name is required")
    if price is not None and price < 0:
        return Errors.invalid("Price cannot be negative")
    if stock is not None and stock < 0:
        return Errors.invalid("Stock cannot be negative")
    return None


async def create_product(
    req: CreateProduct, db: D.Database, catalog: CatalogCache
) -> Result[Product, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))
    if (problem := _check_product_values(req.name, req.price, req.stock)) is not None:
        return Error(problem)

    slug = slugify(req.slug or req.name)
    try:
        async with db.transaction() as session:
            if await session.get(D.CategoryTable, req.category_id) is None:
                return Error(Errors.not_found("Category"))
            if await session.scalar(select(D.ProductTable.id).where(D.ProductTable.slug == slug)):
                return Error(Errors.conflict(f"A product with slug '{slug}' already exists"))
            row = D.ProductTable(
                name=req.name.strip(),
                description=req.description,
                price=req.price,
                stock=req.stock,
                image=req.image,
                featured=req.featured,
                slug=slug,
                category_id=req.category_id,
                seller_id=req.actor.user_id,
            )
            session.add(row)
            await session.flush()
            await session.refresh(row, ["category"])
            product = D.to_product(row)
    except IntegrityError:
        return Error(Errors.conflict(f"A product with slug '{slug}' already exists"))

    await catalog.invalidate_products()
    logger.info("Product %s created by %s", product.slug, req.actor.email)
    return Ok(product)


async def update_product(
    req: UpdateProduct, db: D.Database, catalog: CatalogCache
) -> Result[Product, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))
    if (problem := _check_product_values(req.name, req.price, req.stock)) is not None:
        return Error(problem)

    try:
        async with db.transaction() as session:
            row = await session.get(D.ProductTable, req.product_id)
            if row is None:
                return Error(Errors.not_found("Product"))
            if row.seller_id != req.actor.user_id:
                return Error(Errors.forbidden("You can only manage your own products"))
            if req.category_id is not None and req.category_id != row.category_id:
                if await session.get(D.CategoryTable, req.category_id) is None:
                    return Error(Errors.not_found("Category"))
                row.category_id = req.category_id
            if req.slug is not None:
                slug = slugify(req.slug)
                taken = await session.scalar(
                    select(D.ProductTable.id).where(
                        D.ProductTable.slug == slug, D.ProductTable.id != row.id
                    )
                )
                if taken:
                    return Error(Errors.conflict(f"A product with slug '{slug}' already exists"))
                row.slug = slug

            if req.name is not None:
                row.name = req.name.strip()
            if req.description is not None:
                row.description = req.description
            if req.price is not None:
                row.price = req.price
            if req.stock is not None:
                row.stock = req.stock
            if req.image is not None:
                row.image = req.image
            if req.featured is not None:
                row.featured = req.featured

            await session.flush()
            await session.refresh(row, ["category"])
            product = D.to_product(row)
    except IntegrityError:
        return Error(Errors.conflict("Product update conflicts with an existing product"))

    await catalog.invalidate_products()
    return Ok(product)


async def delete_product(
    req: DeleteProduct, db: D.Database, catalog: CatalogCache
) -> Result[str, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))

    async with db.transaction() as session:
        row = await session.get(D.ProductTable, req.product_id)
        if row is None:
            return Error(Errors.not_found("Product"))
        if row.seller_id != req.actor.user_id:
            return Error(Errors.forbidden("You can only manage your own products"))
        ordered = await session.scalar(
            select(exists().where(D.OrderItemTable.product_id == row.id))
        )
        if ordered:
            return Error(Errors.conflict("Product has order history and cannot be deleted"))
        await session.delete(row)

    await catalog.invalidate_products()
    logger.info("Product %s deleted by %s", req.product_id, req.actor.email)
    return Ok(req.product_id)


async def create_category(
    req: CreateCategory, db: D.Database, catalog: CatalogCache
) -> Result[Category, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))
    if not req.name.strip():
        return Error(Errors.invalid("Category name is required"))

    slug = slugify(req.slug or req.name)
    try:
        async with db.transaction() as session:
            if await session.scalar(select(D.CategoryTable.id).where(D.CategoryTable.slug == slug)):
                return Error(Errors.conflict(f"A category with slug '{slug}' already exists"))
            row = D.CategoryTable(name=req.name.strip(), slug=slug, description=req.description)
            session.add(row)
            await session.flush()
            category = D.to_category(row)
    except IntegrityError:
        return Error(Errors.conflict(f"A category with slug '{slug}' already exists"))

    await catalog.invalidate_categories()
    return Ok(category)


async def update_category(
    req: UpdateCategory, db: D.Database, catalog: CatalogCache
) -> Result[Category, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))
    if req.name is not None and not req.name.strip():
        return Error(Errors.invalid("Category name is required"))

    async with db.transaction() as session:
        row = await session.get(D.CategoryTable, req.category_id)
        if row is None:
            return Error(Errors.not_found("Category"))
        if req.slug is not None:
            slug = slugify(req.slug)
            taken = await session.scalar(
                select(D.CategoryTable.id).where(
                    D.CategoryTable.slug == slug, D.CategoryTable.id != row.id
                )
            )
            if taken:
                return Error(Errors.conflict(f"A category with slug '{slug}' already exists"))
            row.slug = slug
        if req.name is not None:
            row.name = req.name.strip()
        if req.description is not None:
            row.description = req.description
        await session.flush()
        category = D.to_category(row)

    await catalog.invalidate_categories()
    return Ok(category)


async def delete_category(
    req: DeleteCategory, db: D.Database, catalog: CatalogCache
) -> Result[str, ShopError]:
    if not req.actor.is_admin:
        return Error(Errors.forbidden("Admin access required"))

    async with db.transaction() as session:
        row = await session.get(D.CategoryTable, req.category_id)
        if row is None:
            return Error(Errors.not_found("Category"))
        in_use = await session.scalar(
            select(exists().where(D.ProductTable.category_id == row.id))
        )
        if in_use:
            return Error(Errors.conflict("Category still has products"))
        await session.delete(row)

    await catalog.invalidate_categories()
    return Ok(req.category_id)


handlers = (
    ops()
    .on(ListProducts, list_products)
    .on(GetProduct, get_product)
    .on(FeaturedProducts, featured_products)
    .on(ListCategories, list_categories)
    .on(GetCategory, get_category)
    .on(CreateProduct, create_product)
    .on(UpdateProduct, update_product)
    .on(DeleteProduct, delete_product)
    .on(CreateCategory, create_category)
    .on(UpdateCategory, update_category)
    .on(DeleteCategory, delete_category)
)


__all__ = (
    "slugify",
    "CatalogCache",
    "ListProducts",
    "GetProduct",
    "FeaturedProducts",
    "ListCategories",
    "GetCategory",
    "CreateProduct",
    "UpdateProduct",
    "DeleteProduct",
    "CreateCategory",
    "UpdateCategory",
    "DeleteCategory",
    "handlers",
)
