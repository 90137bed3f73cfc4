"""
paysync – SQLAlchemy Models

This file defines the commerce store the webhook writes to:
- Customers
- Carts & Cart Items
- Orders
- Order Payments
- Order History (state transitions)
- PSP Events (webhook idempotency keys)
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey,
    JSON, func, Float, Text
)
from sqlalchemy.orm import relationship
from .db import Base


# =====================================================
# CUSTOMER MODEL
# =====================================================

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(128), nullable=True)

    # Shared with the storefront to authorize order validation
    secure_key = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    carts = relationship("Cart", back_populates="customer")

    def __repr__(self):
        return f"<Customer(id={self.id}, email={self.email})>"



# =====================================================
# CART MODELS
# =====================================================

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"),
                         nullable=True, index=True)

    currency = Column(String(8), nullable=False, default="INR")
    shipping_cost = Column(Integer, nullable=False, default=0)  # in paise

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="carts")
    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan")

    def products_total(self) -> int:
        return sum(item.line_total() for item in self.items)

    def order_total(self) -> int:
        """Amount due with taxes, products and shipping, in paise."""
        return self.products_total() + int(self.shipping_cost or 0)


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"),
                     nullable=False, index=True)

    sku = Column(String(64), nullable=True)
    unit_price = Column(Integer, nullable=False)   # tax excluded, in paise
    quantity = Column(Integer, nullable=False, default=1)
    tax_rate = Column(Float, nullable=False, default=0.0)  # 0.18 for 18%

    cart = relationship("Cart", back_populates="items")

    def line_total(self) -> int:
        return int(round(self.unit_price * self.quantity * (1 + (self.tax_rate or 0.0))))



# =====================================================
# ORDER MODELS
# =====================================================

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)

    # One order per cart
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="RESTRICT"),
                     nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"),
                         nullable=True, index=True)

    current_state = Column(Integer, nullable=False)
    total_paid = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False, default="INR")

    payment_method = Column(String(64), nullable=False)  # razorpay.card
    module = Column(String(32), nullable=False, default="razorpay")
    secure_key = Column(String(64), nullable=True)
    message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    payments = relationship("OrderPayment", back_populates="order", cascade="all, delete-orphan")
    history = relationship("OrderHistory", back_populates="order", cascade="all, delete-orphan",
                           order_by="OrderHistory.id")

    def __repr__(self):
        return f"<Order(id={self.id}, cart_id={self.cart_id}, state={self.current_state})>"


class OrderPayment(Base):
    __tablename__ = "order_payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"),
                      nullable=False, index=True)

    transaction_id = Column(String(128), nullable=True, index=True)  # Razorpay payment id
    amount = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False, default="INR")
    payment_method = Column(String(64), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="payments")


class OrderHistory(Base):
    __tablename__ = "order_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    state = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="history")



# =====================================================
# PSP EVENT MODEL
# =====================================================

class PspEvent(Base):
    __tablename__ = "psp_events"

    id = Column(Integer, primary_key=True)
    provider = Column(String(32), nullable=False)
    event_type = Column(String(64), nullable=False)
    # provider:event:payment_id
    psp_event_id = Column(String(160), nullable=False, unique=True, index=True)
    payload = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
