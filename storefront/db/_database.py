"""
Database — engine, session factory and transaction scope.

Note: on SQLite ``transaction()`` starts with ``BEGIN IMMEDIATE``. The write
lock is taken up front, so two checkouts racing for the last unit serialize
instead of failing with a lock upgrade error. ``session()`` reads use a
deferred ``BEGIN``. Use a file URL when sessions run concurrently;
``:memory:`` shares a single connection.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.db._tables import Base

IMMEDIATE = "storefront_immediate"


class Database:
    """Owns the engine; hands out sessions and transactions."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.sessions = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Read scope. Nothing is committed."""
        async with self.sessions() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Write scope: commits on normal exit, rolls back on any exception.

        Example:
            async with db.transaction() as session:
                session.add(row)
        """
        async with self.sessions() as session:
            async with session.begin():
                await session.connection(execution_options={IMMEDIATE: True})
                yield session

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        # take over transaction control from the driver
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        if conn.get_execution_options().get(IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    if make_url(url).get_backend_name() == "sqlite":
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": 30})
        _install_sqlite_hooks(engine)
        return engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


async def create_database(
    url: str = "sqlite+aiosqlite:///storefront.db",
    echo: bool = False,
) -> Database:
    """Create engine, ensure schema, return Database."""
    db = Database(create_engine(url, echo=echo))
    await db.create_all()
    return db


__all__ = ("Database", "create_engine", "create_database")
