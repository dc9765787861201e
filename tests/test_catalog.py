"""Catalog reads, admin writes and cache invalidation."""

import pytest

from storefront.catalog import (
    CreateCategory,
    CreateProduct,
    DeleteCategory,
    DeleteProduct,
    FeaturedProducts,
    GetCategory,
    GetProduct,
    ListCategories,
    ListProducts,
    UpdateCategory,
    UpdateProduct,
    slugify,
)
from storefront.checkout import PlaceOrder
from storefront.errors import ErrorKind

from conftest import SHIPPING, kind_of, ok


@pytest.mark.parametrize(
    "name, slug",
    [
        ("Blue Mug", "blue-mug"),
        ("  Blue   Coffee Mug ", "blue-coffee-mug"),
        ("Mug", "mug"),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


class TestReads:
    async def test_list_filters(self, runner, shop):
        kitchen = await shop.category("Kitchen")
        garden = await shop.category("Garden")
        await shop.product(kitchen, "Blue Mug", description="ceramic", featured=True)
        await shop.product(kitchen, "Steel Kettle", description="whistles")
        await shop.product(garden, "Clay Pot", description="Terracotta, ceramic glaze")

        by_slug = ok(await runner.run(ListProducts(category="kitchen")))
        by_id = ok(await runner.run(ListProducts(category=garden)))
        featured = ok(await runner.run(ListProducts(featured=True)))
        searched = ok(await runner.run(ListProducts(search="CERAMIC")))
        limited = ok(await runner.run(ListProducts(limit=2)))

        assert {p.name for p in by_slug} == {"Blue Mug", "Steel Kettle"}
        assert [p.name for p in by_id] == ["Clay Pot"]
        assert [p.name for p in featured] == ["Blue Mug"]
        assert {p.name for p in searched} == {"Blue Mug", "Clay Pot"}
        assert len(limited) == 2
        assert kind_of(await runner.run(ListProducts(limit=0))) is ErrorKind.INVALID

    async def test_search_treats_wildcards_literally(self, runner, shop):
        kitchen = await shop.category()
        await shop.product(kitchen, "50% Off Mug")
        await shop.product(kitchen, "500 Spoons")
        await shop.product(kitchen, "Tea_Cup")
        await shop.product(kitchen, "Teaxcup")

        percent = ok(await runner.run(ListProducts(search="50%")))
        underscore = ok(await runner.run(ListProducts(search="a_c")))

        assert [p.name for p in percent] == ["50% Off Mug"]
        assert [p.name for p in underscore] == ["Tea_Cup"]

    async def test_featured_excludes_sold_out(self, runner, shop):
        kitchen = await shop.category()
        await shop.product(kitchen, "Blue Mug", featured=True, stock=0)
        await shop.product(kitchen, "Steel Kettle", featured=True, stock=2)

        featured = ok(await runner.run(FeaturedProducts()))

        assert [p.name for p in featured] == ["Steel Kettle"]

    async def test_get_product_and_category(self, runner, shop):
        kitchen = await shop.category("Kitchen")
        await shop.product(kitchen, "Blue Mug")

        product = ok(await runner.run(GetProduct("blue-mug")))
        detail = ok(await runner.run(GetCategory("kitchen")))

        assert product.category is not None
        assert product.category.slug == "kitchen"
        assert detail.category.name == "Kitchen"
        assert [p.slug for p in detail.products] == ["blue-mug"]
        assert kind_of(await runner.run(GetProduct("nope"))) is ErrorKind.NOT_FOUND
        assert kind_of(await runner.run(GetCategory("nope"))) is ErrorKind.NOT_FOUND


class TestProductWrites:
    async def test_create_derives_slug_and_owner(self, runner, shop):
        admin = await shop.admin()
        kitchen = await shop.category()

        op = CreateProduct(admin, "Blue Coffee Mug", "Holds coffee", 1299, 5, kitchen)
        product = ok(await runner.run(op))

        assert product.slug == "blue-coffee-mug"
        assert product.seller_id == admin.user_id
        assert product.category is not None

    async def test_duplicate_slug_conflicts(self, runner, shop):
        admin = await shop.admin()
        kitchen = await shop.category()
        await shop.product(kitchen, "Blue Mug")

        result = await runner.run(CreateProduct(admin, "Blue Mug", "", 100, 1, kitchen))

        assert kind_of(result) is ErrorKind.CONFLICT

    @pytest.mark.parametrize("price, stock", [(-1, 5), (100, -1)])
    async def test_negative_values_are_invalid(self, runner, shop, price, stock):
        admin = await shop.admin()
        kitchen = await shop.category()

        result = await runner.run(CreateProduct(admin, "Mug", "", price, stock, kitchen))

        assert kind_of(result) is ErrorKind.INVALID

    async def test_users_cannot_write(self, runner, shop):
        user = await shop.user()
        kitchen = await shop.category()

        result = await runner.run(CreateProduct(user, "Mug", "", 100, 1, kitchen))

        assert kind_of(result) is ErrorKind.FORBIDDEN

    async def test_sellers_only_touch_their_own_products(self, runner, shop):
        owner = await shop.admin("owner@example.com")
        other = await shop.admin("other@example.com")
        mug = await shop.product(await shop.category(), seller_id=owner.user_id)

        assert kind_of(await runner.run(UpdateProduct(other, mug, price=1))) is ErrorKind.FORBIDDEN
        assert kind_of(await runner.run(DeleteProduct(other, mug))) is ErrorKind.FORBIDDEN

    async def test_update_refreshes_cached_product(self, runner, shop):
        admin = await shop.admin()
        mug = await shop.product(await shop.category(), price=1000, seller_id=admin.user_id)
        assert ok(await runner.run(GetProduct("blue-mug"))).price == 1000

        await runner.run(UpdateProduct(admin, mug, price=1500, featured=True))

        product = ok(await runner.run(GetProduct("blue-mug")))
        assert product.price == 1500
        assert product.featured

    async def test_checkout_refreshes_cached_stock(self, runner, shop):
        user = await shop.user()
        await shop.product(await shop.category(), stock=4)
        mug = ok(await runner.run(GetProduct("blue-mug")))
        await shop.put_in_cart(user.user_id, mug.id, 3)

        ok(await runner.run(PlaceOrder(user.user_id, SHIPPING)))

        assert ok(await runner.run(GetProduct("blue-mug"))).stock == 1

    async def test_product_with_orders_cannot_be_deleted(self, runner, shop):
        admin = await shop.admin()
        user = await shop.user()
        mug = await shop.product(await shop.category(), seller_id=admin.user_id)
        await shop.put_in_cart(user.user_id, mug, 1)
        ok(await runner.run(PlaceOrder(user.user_id, SHIPPING)))

        assert kind_of(await runner.run(DeleteProduct(admin, mug))) is ErrorKind.CONFLICT

    async def test_delete_product(self, runner, shop):
        admin = await shop.admin()
        mug = await shop.product(await shop.category(), seller_id=admin.user_id)
        ok(await runner.run(GetProduct("blue-mug")))

        assert ok(await runner.run(DeleteProduct(admin, mug))) == mug
        assert kind_of(await runner.run(GetProduct("blue-mug"))) is ErrorKind.NOT_FOUND


class TestCategoryWrites:
    async def test_create_update_list(self, runner, shop):
        admin = await shop.admin()
        assert ok(await runner.run(ListCategories())) == ()

        created = ok(await runner.run(CreateCategory(admin, "Home Decor")))
        renamed = ok(await runner.run(UpdateCategory(admin, created.id, name="Decor", slug="decor")))

        assert created.slug == "home-decor"
        assert renamed.slug == "decor"
        listed = ok(await runner.run(ListCategories()))
        assert [c.name for c in listed] == ["Decor"]

    async def test_duplicate_category_slug(self, runner, shop):
        admin = await shop.admin()
        await shop.category("Kitchen")

        assert kind_of(await runner.run(CreateCategory(admin, "Kitchen"))) is ErrorKind.CONFLICT

    async def test_category_with_products_cannot_be_deleted(self, runner, shop):
        admin = await shop.admin()
        kitchen = await shop.category()
        garden = await shop.category("Garden")
        await shop.product(kitchen)

        assert kind_of(await runner.run(DeleteCategory(admin, kitchen))) is ErrorKind.CONFLICT
        assert ok(await runner.run(DeleteCategory(admin, garden))) == garden
