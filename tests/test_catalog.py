"""
カタログ書き込みサービスのテスト
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from pricebook.exceptions import (
    CatalogValidationError,
    CategoryNotFoundError,
    ProductNotFoundError,
)
from pricebook.models.product import Product
from pricebook.schemas.product import ProductForm


class TestProductValidation:
    """保存前の入力チェック"""

    @pytest.mark.parametrize(
        "form, field",
        [
            (ProductForm(name="  ", price="3"), "name"),
            (ProductForm(name="盐", price=""), "price"),
            (ProductForm(name="盐", price="0"), "price"),
            (ProductForm(name="盐", price="abc"), "price"),
            (ProductForm(name="盐", price="-2"), "price"),
            (ProductForm(name="盐", price="2", unit="吨"), "unit"),
        ],
    )
    def test_invalid_form_is_rejected_before_write(self, db_session, catalog, form, field):
        with pytest.raises(CatalogValidationError) as exc_info:
            catalog.create_product(form)

        assert exc_info.value.field == field
        assert db_session.scalar(select(func.count()).select_from(Product)) == 0

    def test_update_validates_too(self, catalog, make_product):
        product = make_product()
        with pytest.raises(CatalogValidationError):
            catalog.update_product(product.id, ProductForm(name="", price="3"), product.price)


class TestProductWrites:
    """商品の登録・削除"""

    def test_create_applies_defaults(self, catalog):
        product = catalog.create_product(
            ProductForm(name=" 苹果 ", price="6.666", barcode="", note="", image_url="")
        )
        assert product.name == "苹果"
        assert product.price == Decimal("6.67")
        assert product.unit == "件"
        assert product.barcode is None
        assert product.note is None
        assert product.image_url is None
        assert product.category_id is None

    def test_create_with_duplicate_barcode_is_allowed(self, catalog, caplog):
        """バーコードの重複は警告のみ"""
        catalog.create_product(ProductForm(name="A", price="1", barcode="999"))
        catalog.create_product(ProductForm(name="B", price="1", barcode="999"))
        assert "999" in caplog.text

    def test_get_missing_product_returns_none(self, catalog):
        assert catalog.get_product_by_id("missing") is None

    def test_delete_product(self, catalog, make_product):
        product = make_product()
        catalog.delete_product(product.id)
        assert catalog.get_product_by_id(product.id) is None

    def test_delete_missing_product(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.delete_product("missing")


class TestCategories:
    """カテゴリ管理"""

    def test_create_and_rename(self, catalog):
        category = catalog.create_category(" 水果 ")
        assert category.name == "水果"
        assert category.sort_order == 0

        renamed = catalog.update_category(category.id, "生鲜")
        assert renamed.name == "生鲜"
        assert [c.name for c in catalog.list_categories()] == ["生鲜"]

    def test_empty_name_is_rejected(self, catalog):
        with pytest.raises(CatalogValidationError):
            catalog.create_category("   ")

    def test_list_order(self, db_session, catalog):
        later = catalog.create_category("B")
        earlier = catalog.create_category("A")
        later.sort_order = 5
        db_session.commit()
        catalog.category_cache.invalidate()

        assert [c.name for c in catalog.list_categories()] == ["A", "B"]
        assert earlier.sort_order == 0

    def test_delete_reclassifies_products(self, db_session, catalog, make_product):
        """カテゴリ削除で商品は未分類になり、削除はされない"""
        category = catalog.create_category("日用品")
        p1 = make_product(name="纸巾", category_id=category.id)
        p2 = make_product(name="洗洁精", category_id=category.id)
        other = make_product(name="苹果")

        reclassified = catalog.delete_category(category.id)

        assert reclassified == 2
        for product_id in (p1.id, p2.id):
            stored = catalog.get_product_by_id(product_id)
            assert stored is not None
            assert stored.category_id is None
        assert catalog.get_product_by_id(other.id) is not None
        assert catalog.list_categories() == []

    def test_missing_category(self, catalog):
        with pytest.raises(CategoryNotFoundError):
            catalog.update_category("missing", "x")
        with pytest.raises(CategoryNotFoundError):
            catalog.delete_category("missing")

    def test_list_uses_cache_until_write(self, catalog):
        catalog.create_category("A")
        catalog.list_categories()
        catalog.list_categories()
        stats = catalog.category_cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1

        catalog.create_category("B")
        assert catalog.category_cache.get_stats()["cached"] is False
        assert len(catalog.list_categories()) == 2
