"""
Commerce store operations used by the Razorpay webhook.

Reads carts and orders, validates new orders from paid carts and moves
existing orders between states. Nothing here commits; the caller owns the
transaction.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from paysync.logging_config import get_logger
from paysync.models import Cart, Customer, Order, OrderHistory, OrderPayment

logger = get_logger(__name__)


class OrderStoreError(Exception):
    """The commerce store could not complete an operation."""


class DuplicateOrderError(OrderStoreError):
    """Another order already exists for the cart."""


class CartNotFoundError(OrderStoreError):
    def __init__(self, cart_id: int):
        super().__init__(f"Cart {cart_id} not found")
        self.cart_id = cart_id


class OrderService:
    def __init__(self, db: Session, module: str = "razorpay"):
        self.db = db
        self.module = module

    def get_cart(self, cart_id: int) -> Cart:
        try:
            cart = self.db.get(Cart, cart_id)
        except SQLAlchemyError as e:
            raise OrderStoreError(f"Cart lookup failed: {e}") from e
        if cart is None:
            raise CartNotFoundError(cart_id)
        return cart

    def get_customer(self, customer_id: Optional[int]) -> Optional[Customer]:
        if customer_id is None:
            return None
        try:
            return self.db.get(Customer, customer_id)
        except SQLAlchemyError as e:
            raise OrderStoreError(f"Customer lookup failed: {e}") from e

    def get_order_by_cart_id(self, cart_id: int) -> Optional[Order]:
        try:
            return self.db.execute(
                select(Order).where(Order.cart_id == cart_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise OrderStoreError(f"Order lookup failed: {e}") from e

    def count_order_payments(self, order: Order) -> int:
        try:
            return self.db.execute(
                select(func.count(OrderPayment.id)).where(OrderPayment.order_id == order.id)
            ).scalar_one()
        except SQLAlchemyError as e:
            raise OrderStoreError(f"Payment count failed: {e}") from e

    def add_order_payment(
        self,
        order: Order,
        amount: int,
        payment_method: str,
        transaction_id: Optional[str] = None,
    ) -> OrderPayment:
        payment = OrderPayment(
            order_id=order.id,
            transaction_id=transaction_id,
            amount=amount,
            currency=order.currency,
            payment_method=payment_method,
        )
        try:
            self.db.add(payment)
            self.db.flush()
        except SQLAlchemyError as e:
            raise OrderStoreError(f"Recording payment failed: {e}") from e
        return payment

    def set_order_state(self, order: Order, state: int) -> None:
        if order.current_state == state:
            return
        try:
            order.current_state = state
            self.db.add(OrderHistory(order_id=order.id, state=state))
            self.db.flush()
        except SQLAlchemyError as e:
            raise OrderStoreError(f"State change failed: {e}") from e

    def validate_order(
        self,
        cart: Cart,
        state: int,
        amount_paid: int,
        payment_method: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        secure_key: Optional[str] = None,
    ) -> Order:
        """
        Create the order for a paid cart.

        Args:
            cart: Cart being checked out
            state: Initial order state
            amount_paid: Amount really paid by the customer, in paise
            payment_method: Payment label, e.g. "razorpay.card"
            message: Free text attached to the order
            extra: Extra vars; ``transaction_id`` is stored on the payment row
            secure_key: Customer secure key; must match when the customer has one

        Returns:
            The new Order, flushed but not committed
        """
        extra = extra or {}
        customer = cart.customer
        if customer is not None and customer.secure_key and secure_key != customer.secure_key:
            raise OrderStoreError(f"Secure key mismatch for cart {cart.id}")

        order = Order(
            cart_id=cart.id,
            customer_id=cart.customer_id,
            current_state=state,
            total_paid=amount_paid,
            currency=cart.currency,
            payment_method=payment_method,
            module=self.module,
            secure_key=secure_key,
            message=message,
        )
        try:
            self.db.add(order)
            self.db.flush()
            self.db.add(OrderHistory(order_id=order.id, state=state))
        except IntegrityError as e:
            raise DuplicateOrderError(f"Order already exists for cart {cart.id}") from e
        except SQLAlchemyError as e:
            raise OrderStoreError(f"Order creation failed: {e}") from e

        self.add_order_payment(
            order,
            amount=amount_paid,
            payment_method=payment_method,
            transaction_id=extra.get("transaction_id"),
        )
        logger.info(
            "order_validated",
            order_id=order.id,
            cart_id=cart.id,
            amount=amount_paid,
            payment_method=payment_method,
        )
        return order
