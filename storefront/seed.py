"""
Seed — load categories and products from a JSON document.

Re-running is safe: rows are matched by slug and existing ones are left
alone.

    {
      "categories": [{"name": "Home Decor", "description": "..."}],
      "products": [
        {"name": "Blue Mug", "price": 1299, "stock": 40,
         "category": "home-decor", "featured": true}
      ]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import select

from storefront import db as D
from storefront.catalog import slugify

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SeedReport:
    categories_created: int
    products_created: int
    skipped: int


async def seed_catalog(db: D.Database, data: dict[str, Any], seller_id: str | None = None) -> SeedReport:
    categories_created = products_created = skipped = 0

    async with db.transaction() as session:
        by_slug: dict[str, str] = {
            row.slug: row.id for row in await session.scalars(select(D.CategoryTable))
        }

        for entry in data.get("categories", ()):
            slug = slugify(entry.get("slug") or entry["name"])
            if slug in by_slug:
                skipped += 1
                continue
            row = D.CategoryTable(name=entry["name"], slug=slug, description=entry.get("description"))
            session.add(row)
            await session.flush()
            by_slug[slug] = row.id
            categories_created += 1

        known = set(await session.scalars(select(D.ProductTable.slug)))
        for entry in data.get("products", ()):
            slug = slugify(entry.get("slug") or entry["name"])
            if slug in known:
                skipped += 1
                continue
            category_slug = slugify(entry["category"])
            if category_slug not in by_slug:
                raise ValueError(f"product {slug!r} names unknown category {category_slug!r}")
            session.add(
                D.ProductTable(
                    name=entry["name"],
                    description=entry.get("description", ""),
                    price=int(entry["price"]),
                    stock=int(entry.get("stock", 0)),
                    image=entry.get("image"),
                    featured=bool(entry.get("featured", False)),
                    slug=slug,
                    category_id=by_slug[category_slug],
                    seller_id=seller_id,
                )
            )
            known.add(slug)
            products_created += 1

    report = SeedReport(categories_created, products_created, skipped)
    logger.info(
        "Seeded %d categories and %d products (%d already present)",
        report.categories_created,
        report.products_created,
        report.skipped,
    )
    return report


async def seed_from_file(db: D.Database, path: Path, seller_email: str | None = None) -> SeedReport:
    data = json.loads(path.read_text(encoding="utf-8"))
    seller_id = None
    if seller_email:
        async with db.session() as session:
            seller_id = await session.scalar(
                select(D.UserTable.id).where(D.UserTable.email == seller_email.strip().lower())
            )
        if seller_id is None:
            raise ValueError(f"no user with email {seller_email!r}")
    return await seed_catalog(db, data, seller_id)


__all__ = ("SeedReport", "seed_catalog", "seed_from_file")
