"""
Shared helpers for the test suites: in-memory commerce store, seeded carts
and signed Razorpay webhook bodies.
"""
import hashlib
import hmac
import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from paysync.config import WebhookConfig
from paysync.db import Base
from paysync.models import Cart, CartItem, Customer

WEBHOOK_SECRET = "whsec_test"
PAID_STATE = 2
AWAITING_STATE = 10


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def make_config(**overrides) -> WebhookConfig:
    values = dict(
        webhook_enabled=True,
        webhook_secret=WEBHOOK_SECRET,
        paid_status_code=PAID_STATE,
        payment_method_prefix="razorpay",
    )
    values.update(overrides)
    return WebhookConfig(**values)


def seed_cart(db, cart_id=42, secure_key="sk_customer_42"):
    """
    Cart total: 2 x 500.00 at 18% tax + 1 x 250.00 untaxed + 50.00 shipping
    = 1180.00 + 250.00 + 50.00 = 1480.00 (148000 paise).
    """
    customer = Customer(email="buyer@example.com", full_name="Test Buyer", secure_key=secure_key)
    db.add(customer)
    db.flush()
    cart = Cart(id=cart_id, customer_id=customer.id, currency="INR", shipping_cost=5000)
    cart.items = [
        CartItem(sku="TEE-01", unit_price=50000, quantity=2, tax_rate=0.18),
        CartItem(sku="MUG-01", unit_price=25000, quantity=1, tax_rate=0.0),
    ]
    db.add(cart)
    db.commit()
    return cart


CART_TOTAL = 148000


def order_paid_event(payment_id="pay_1", method="card", cart_id="42", **entity_overrides):
    entity = {
        "id": payment_id,
        "entity": "payment",
        "amount": CART_TOTAL,
        "currency": "INR",
        "status": "captured",
        "method": method,
        "order_id": "order_1",
        "notes": {"prestashop_cart_id": cart_id},
    }
    entity.update(entity_overrides)
    return {
        "entity": "event",
        "event": "order.paid",
        "payload": {
            "payment": {"entity": entity},
            "order": {"entity": {"id": "order_1", "status": "paid"}},
        },
    }


def encode(event) -> bytes:
    return json.dumps(event).encode()


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
