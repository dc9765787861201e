"""Application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront._logging import configure_logging
from storefront.api import _admin, _auth, _shop
from storefront.api._errors import install_error_handlers
from storefront.config import Settings
from storefront.db import create_database
from storefront.service import build_runner


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the HTTP app. The database and runner are created on startup.

    Example:
        app = create_app(Settings.from_env())
        uvicorn.run(app)
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        db = await create_database(settings.database_url)
        app.state.db = db
        app.state.runner = build_runner(db, settings)
        try:
            yield
        finally:
            await db.dispose()

    app = FastAPI(title="storefront", lifespan=lifespan)
    app.state.settings = settings
    install_error_handlers(app)
    app.include_router(_auth.router)
    app.include_router(_shop.router)
    app.include_router(_admin.router)
    return app


__all__ = ("create_app",)
