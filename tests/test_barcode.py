"""
バーコード検索のテスト
"""

import pytest

from pricebook.exceptions import AmbiguousBarcodeError
from pricebook.services.barcode import BarcodeLookupService


class TestBarcodeLookup:
    """バーコード検索"""

    def test_unknown_barcode_returns_none(self, db_session, make_product):
        """未登録は None（エラーではない）"""
        make_product(barcode="6901234567890")
        assert BarcodeLookupService(db_session).find_by_barcode("0000000000000") is None

    def test_exact_match(self, db_session, make_product):
        product = make_product(name="酱油", barcode="6901234567890")
        found = BarcodeLookupService(db_session).find_by_barcode(" 6901234567890 ")
        assert found is not None
        assert found.id == product.id

    def test_substring_does_not_match(self, db_session, make_product):
        make_product(barcode="6901234567890")
        assert BarcodeLookupService(db_session).find_by_barcode("690123") is None

    def test_empty_code_returns_none(self, db_session):
        assert BarcodeLookupService(db_session).find_by_barcode("  ") is None

    def test_duplicate_barcode_is_an_error(self, db_session, make_product):
        """同じバーコードが2件あれば先頭を返さずエラー"""
        first = make_product(name="A", barcode="4901111111111")
        second = make_product(name="B", barcode="4901111111111")

        with pytest.raises(AmbiguousBarcodeError) as exc_info:
            BarcodeLookupService(db_session).find_by_barcode("4901111111111")

        assert exc_info.value.barcode == "4901111111111"
        assert set(exc_info.value.product_ids) == {first.id, second.id}

    def test_is_registered(self, db_session, make_product):
        make_product(barcode="111")
        service = BarcodeLookupService(db_session)
        assert service.is_registered("111") is True
        assert service.is_registered("222") is False
