"""
Record behavior that services rely on.
"""

import pytest

from marketplace.models import Amounts, CustomerInfo, LineItem, Order, Product, User


class TestProductStock:
    def test_take_and_restore_are_inverse(self):
        product = Product(name="Lamp", price_cents=100, stock=2)
        product.take_stock(2)
        assert (product.stock, product.sold, product.status) == (0, 2, "out_of_stock")

        product.restore_stock(2)
        assert (product.stock, product.sold, product.status) == (2, 0, "active")

    def test_take_more_than_stock(self):
        product = Product(name="Lamp", stock=1)
        with pytest.raises(ValueError):
            product.take_stock(2)
        assert product.stock == 1

    def test_restore_keeps_inactive(self):
        product = Product(name="Lamp", stock=1, status="inactive")
        product.restore_stock(1)
        assert product.status == "inactive"

    def test_original_price_defaults_to_price(self):
        assert Product(price_cents=700).original_price_cents == 700
        assert Product(price_cents=700, original_price_cents=900).original_price_cents == 900


class TestOrderRecord:
    def make_order(self):
        return Order(
            user_id="u1",
            items=[
                LineItem(product_id="p1", vendor_id="v1", name="A", price_cents=250, quantity=2),
                LineItem(product_id="p2", vendor_id="v2", name="B", price_cents=100, quantity=1),
                LineItem(product_id="p3", vendor_id="v1", name="C", price_cents=50, quantity=3),
            ],
            customer_info=CustomerInfo(name="Casey", email="casey@example.com"),
            amounts=Amounts(subtotal_cents=750, total_cents=800, service_fee_cents=50),
        )

    def test_revenue_by_vendor(self):
        assert self.make_order().revenue_by_vendor() == {"v1": 650, "v2": 100}

    def test_record_status_appends(self):
        order = self.make_order()
        order.record_status("pending", "placed")
        order.record_status("confirmed", "ok")
        assert order.status == order.tracking.status == "confirmed"
        assert [(e.status, e.message) for e in order.tracking.updates] == [("pending", "placed"), ("confirmed", "ok")]

    def test_document_round_trip(self):
        order = self.make_order()
        order.record_status("pending", "placed")
        restored = Order.from_document(order.to_document())
        assert restored.to_dict() == order.to_dict()

    def test_can_cancel(self):
        order = self.make_order()
        for status, expected in [("pending", True), ("confirmed", True), ("processing", False), ("cancelled", False)]:
            order.status = status
            assert order.can_cancel is expected


def test_user_dict_hides_password_hash():
    user = User(name="Ann", email="ann@example.com", password_hash="$2b$secret")
    data = user.to_dict()
    assert "password_hash" not in data
    assert data["order_count"] == 0
