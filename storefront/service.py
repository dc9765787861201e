"""
Service — every handler on one runner, with shared dependencies injected.

    db = await create_database(settings.database_url)
    runner = build_runner(db, settings)
    result = await runner.run(GetCart(user_id))
"""

from __future__ import annotations

from storefront import analytics, auth, cart, catalog, checkout, orders
from storefront.catalog import CatalogCache
from storefront.config import Settings
from storefront.db import Database
from storefront.ops import OpsBuilder, Runner, ops


def handlers() -> OpsBuilder:
    return (
        ops()
        .include(auth.handlers)
        .include(catalog.handlers)
        .include(cart.handlers)
        .include(checkout.handlers)
        .include(orders.handlers)
        .include(analytics.handlers)
    )


def build_runner(db: Database, settings: Settings) -> Runner:
    return (
        handlers()
        .compile()
        .inject(Database, db)
        .inject(Settings, settings)
        .inject(CatalogCache, CatalogCache(db, max_size=settings.catalog_cache_size))
    )


__all__ = ("handlers", "build_runner")
