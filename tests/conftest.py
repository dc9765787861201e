"""Shared fixtures: a fresh file-backed SQLite database per test."""

from dataclasses import dataclass
from datetime import datetime

import pytest
import pytest_asyncio
from kungfu import Error, Ok
from sqlalchemy import select

from storefront import db as D
from storefront.config import Settings
from storefront.domain import Principal, Role, ShippingInfo
from storefront.errors import ErrorKind
from storefront.service import build_runner

SHIPPING = ShippingInfo(
    full_name="Asha Rao",
    email="asha@example.com",
    phone="98765 43210",
    address="12 MG Road",
    city="Bengaluru",
    state="Karnataka",
    zip_code="560001",
)


def ok(result):
    """Value of an Ok; fails the test on Error."""
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(f"expected Ok, got {e!r}")


def kind_of(result) -> ErrorKind | None:
    match result:
        case Error(e):
            return e.kind
        case Ok(_):
            return None


@pytest.fixture
def settings(tmp_path) -> Settings:
    return (
        Settings()
        .with_database(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
        .with_secret("test-secret")
        .with_bcrypt_rounds(4)
    )


@pytest_asyncio.fixture
async def db(settings):
    database = await D.create_database(settings.database_url)
    yield database
    await database.dispose()


@pytest.fixture
def runner(db, settings):
    return build_runner(db, settings)


@dataclass
class Shop:
    """Direct row factories; bypasses the ops so tests control exact state."""

    db: D.Database

    async def user(self, email: str = "buyer@example.com", role: Role = Role.USER) -> Principal:
        async with self.db.transaction() as session:
            row = D.UserTable(
                email=email,
                password_hash="not-a-real-hash",
                first_name=email.split("@")[0].title(),
                last_name="Tester",
                role=role.value,
            )
            session.add(row)
            await session.flush()
            return Principal(user_id=row.id, email=row.email, role=role)

    async def admin(self, email: str = "seller@example.com") -> Principal:
        return await self.user(email, Role.ADMIN)

    async def category(self, name: str = "Kitchen", slug: str | None = None) -> str:
        async with self.db.transaction() as session:
            row = D.CategoryTable(name=name, slug=slug or name.lower().replace(" ", "-"))
            session.add(row)
            await session.flush()
            return row.id

    async def product(
        self,
        category_id: str,
        name: str = "Blue Mug",
        price: int = 1299,
        stock: int = 10,
        seller_id: str | None = None,
        featured: bool = False,
        description: str = "",
    ) -> str:
        async with self.db.transaction() as session:
            row = D.ProductTable(
                name=name,
                description=description,
                price=price,
                stock=stock,
                featured=featured,
                slug=name.lower().replace(" ", "-"),
                category_id=category_id,
                seller_id=seller_id,
            )
            session.add(row)
            await session.flush()
            return row.id

    async def put_in_cart(self, user_id: str, product_id: str, quantity: int) -> None:
        async with self.db.transaction() as session:
            session.add(D.CartItemTable(user_id=user_id, product_id=product_id, quantity=quantity))

    async def order(
        self,
        user_id: str,
        product_id: str,
        unit_price: int,
        created_at: datetime,
        quantity: int = 1,
        status: str = "PENDING",
    ) -> str:
        """An order row dated ``created_at``; shipping copied from SHIPPING."""
        subtotal = unit_price * quantity
        async with self.db.transaction() as session:
            row = D.OrderTable(
                id=D.new_id("ord"),
                user_id=user_id,
                status=status,
                shipping_name=SHIPPING.full_name,
                shipping_email=SHIPPING.email,
                shipping_phone=SHIPPING.phone,
                shipping_address=SHIPPING.address,
                shipping_city=SHIPPING.city,
                shipping_state=SHIPPING.state,
                shipping_zip=SHIPPING.zip_code,
                subtotal=subtotal,
                tax=0,
                shipping_cost=0,
                total=subtotal,
                created_at=created_at,
                updated_at=created_at,
                items=[
                    D.OrderItemTable(
                        product_id=product_id, quantity=quantity, unit_price=unit_price
                    )
                ],
            )
            session.add(row)
            await session.flush()
            return row.id

    async def stock(self, product_id: str) -> int:
        async with self.db.session() as session:
            return await session.scalar(
                select(D.ProductTable.stock).where(D.ProductTable.id == product_id)
            )

    async def cart_size(self, user_id: str) -> int:
        async with self.db.session() as session:
            rows = await session.scalars(
                select(D.CartItemTable).where(D.CartItemTable.user_id == user_id)
            )
            return len(rows.all())

    async def order_count(self) -> int:
        async with self.db.session() as session:
            return len((await session.scalars(select(D.OrderTable.id))).all())


@pytest_asyncio.fixture
async def shop(db) -> Shop:
    return Shop(db)
