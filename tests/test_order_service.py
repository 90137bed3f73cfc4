import unittest

from support import CART_TOTAL, PAID_STATE, make_session_factory, seed_cart

from paysync.models import Cart, CartItem, OrderHistory
from paysync.services.order_service import (
    CartNotFoundError,
    DuplicateOrderError,
    OrderService,
    OrderStoreError,
)


class TestCartTotals(unittest.TestCase):
    def test_total_includes_tax_and_shipping(self):
        cart = Cart(shipping_cost=1000)
        cart.items = [
            CartItem(unit_price=10000, quantity=3, tax_rate=0.05),
            CartItem(unit_price=999, quantity=1, tax_rate=0.0),
        ]

        self.assertEqual(cart.products_total(), 31500 + 999)
        self.assertEqual(cart.order_total(), 31500 + 999 + 1000)

    def test_line_total_rounds_to_paise(self):
        item = CartItem(unit_price=333, quantity=1, tax_rate=0.18)

        self.assertEqual(item.line_total(), 393)


class TestOrderService(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()
        self.cart = seed_cart(self.db)
        self.service = OrderService(self.db)

    def tearDown(self):
        self.db.close()

    def validate(self, **overrides):
        kwargs = dict(
            state=PAID_STATE,
            amount_paid=self.cart.order_total(),
            payment_method="razorpay.card",
            extra={"transaction_id": "pay_1"},
            secure_key="sk_customer_42",
        )
        kwargs.update(overrides)
        return self.service.validate_order(self.cart, **kwargs)

    def test_get_cart_raises_for_unknown_id(self):
        with self.assertRaises(CartNotFoundError) as ctx:
            self.service.get_cart(7)
        self.assertEqual(ctx.exception.cart_id, 7)

    def test_validate_order_records_payment_and_history(self):
        order = self.validate()
        self.db.commit()

        self.assertEqual(self.service.get_order_by_cart_id(42).id, order.id)
        self.assertEqual(order.total_paid, CART_TOTAL)
        self.assertEqual(self.service.count_order_payments(order), 1)
        self.assertEqual([h.state for h in order.history], [PAID_STATE])

    def test_validate_order_checks_secure_key(self):
        with self.assertRaises(OrderStoreError):
            self.validate(secure_key="forged")

    def test_second_order_for_cart_is_duplicate(self):
        self.validate()
        self.db.commit()

        with self.assertRaises(DuplicateOrderError):
            self.validate(extra={"transaction_id": "pay_2"})

    def test_set_order_state_skips_same_state(self):
        order = self.validate()
        self.db.commit()

        self.service.set_order_state(order, PAID_STATE)
        self.service.set_order_state(order, 5)
        self.db.commit()

        states = [h.state for h in self.db.query(OrderHistory).order_by(OrderHistory.id)]
        self.assertEqual(states, [PAID_STATE, 5])
        self.assertEqual(order.current_state, 5)


if __name__ == "__main__":
    unittest.main()
