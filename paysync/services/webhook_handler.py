"""
Razorpay webhook processing.

The handler passes on a webhook (ignored) when:
- the body is not valid JSON
- the webhook is disabled or the secret isn't set up
- the event is missing, not recognized, or reserved (payment.authorized, payment.failed)
- the signature header is missing
- the cart already has a paid order

It rejects a webhook whose signature does not match, and materializes an
order from the cart referenced by an order.paid event.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from paysync.config import WebhookConfig
from paysync.logging_config import get_logger
from paysync.models import Cart, Order, PspEvent
from paysync.schemas_pkg.webhooks import (
    OrderPaidPayload,
    WebhookEnvelope,
    WebhookParseError,
    parse_envelope,
    parse_order_paid,
)
from paysync.services.order_service import (
    CartNotFoundError,
    DuplicateOrderError,
    OrderService,
    OrderStoreError,
)
from paysync.services.payments.base import (
    PaymentAdapter,
    PaymentAPIError,
    SignatureVerificationError,
)

logger = get_logger(__name__)


class WebhookOutcome(str, Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass(frozen=True)
class WebhookResult:
    outcome: WebhookOutcome
    reason: Optional[str] = None
    order_id: Optional[int] = None

    @classmethod
    def ignored(cls, reason: Optional[str] = None) -> "WebhookResult":
        return cls(WebhookOutcome.IGNORED, reason)

    @classmethod
    def rejected(cls, reason: str) -> "WebhookResult":
        return cls(WebhookOutcome.REJECTED, reason)

    @classmethod
    def processed(cls, order_id: Optional[int] = None) -> "WebhookResult":
        return cls(WebhookOutcome.PROCESSED, order_id=order_id)

    @classmethod
    def failed(cls, reason: str) -> "WebhookResult":
        return cls(WebhookOutcome.FAILED, reason)


class RazorpayWebhookHandler:
    PAYMENT_AUTHORIZED = "payment.authorized"
    PAYMENT_FAILED = "payment.failed"
    ORDER_PAID = "order.paid"

    PROVIDER = "razorpay"

    def __init__(
        self,
        config: WebhookConfig,
        adapter: PaymentAdapter,
        db: Session,
        orders: Optional[OrderService] = None,
    ):
        self.config = config
        self.adapter = adapter
        self.db = db
        self.orders = orders or OrderService(db, module=self.PROVIDER)

    def _dispatch_table(self) -> Dict[str, Callable[[WebhookEnvelope], WebhookResult]]:
        return {
            self.PAYMENT_AUTHORIZED: self.payment_authorized,
            self.PAYMENT_FAILED: self.payment_failed,
            self.ORDER_PAID: self.order_paid,
        }

    def handle(self, body: bytes, signature: Optional[str]) -> WebhookResult:
        try:
            data = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return WebhookResult.ignored("Invalid JSON")

        if not self.config.webhook_enabled:
            return WebhookResult.ignored("Webhook disabled")

        try:
            envelope = parse_envelope(data)
        except WebhookParseError:
            return WebhookResult.ignored("Missing event")

        if not signature or not self.config.webhook_secret:
            return WebhookResult.ignored("Signature or secret not set")

        try:
            self.adapter.verify_webhook_signature(body, signature, self.config.webhook_secret)
        except SignatureVerificationError as e:
            logger.error(
                "razorpay.signature.verify_failed",
                message=str(e),
                webhook_event=envelope.event,
                data=data,
            )
            return WebhookResult.rejected("Signature Verification failed")

        action = self._dispatch_table().get(envelope.event)
        if action is None:
            return WebhookResult.ignored("Unrecognized event")
        return action(envelope)

    def payment_failed(self, envelope: WebhookEnvelope) -> WebhookResult:
        """Does nothing for the main payments flow currently."""
        return WebhookResult.ignored()

    def payment_authorized(self, envelope: WebhookEnvelope) -> WebhookResult:
        """Does nothing for the main payments flow currently."""
        return WebhookResult.ignored()

    def order_paid(self, envelope: WebhookEnvelope) -> WebhookResult:
        try:
            payload = parse_order_paid(envelope.payload)
        except WebhookParseError as e:
            logger.warning("razorpay.order_paid.invalid_payload", error=str(e))
            return WebhookResult.failed(str(e))

        try:
            cart = self.orders.get_cart(payload.cart_id)
            order = self.orders.get_order_by_cart_id(cart.id)
            if order is not None and self.orders.count_order_payments(order) >= 1:
                # Payment is already done, ignore the event
                logger.debug(
                    "razorpay.order_paid.duplicate",
                    cart_id=cart.id,
                    order_id=order.id,
                    payment_id=payload.payment_id,
                )
                self.db.rollback()
                return WebhookResult.ignored("Order already paid")
        except CartNotFoundError as e:
            self.db.rollback()
            logger.error(
                "razorpay.order_paid.cart_not_found",
                cart_id=e.cart_id,
                payment_id=payload.payment_id,
            )
            return WebhookResult.failed(
                _diagnostic("Cart Id", e.cart_id, payload.payment_id, e)
            )
        except OrderStoreError as e:
            self.db.rollback()
            logger.error(
                "razorpay.order_paid.lookup_failed",
                cart_id=payload.cart_id,
                payment_id=payload.payment_id,
                error=str(e),
            )
            return WebhookResult.failed(
                _diagnostic("Cart Id", payload.cart_id, payload.payment_id, e)
            )

        if order is not None:
            return self._accept_payment(order, payload, envelope)
        return self._create_order(cart, payload, envelope)

    def _claim_event(self, envelope: WebhookEnvelope, payment_id: str) -> None:
        # Unique per delivery of this event for this payment; a concurrent
        # duplicate fails here or at commit
        self.db.add(PspEvent(
            provider=self.PROVIDER,
            event_type=envelope.event,
            psp_event_id=f"{self.PROVIDER}:{envelope.event}:{payment_id}",
            payload=envelope.model_dump(),
        ))
        self.db.flush()

    def _duplicate(self, cart_id: int, payment_id: str) -> WebhookResult:
        self.db.rollback()
        logger.info("razorpay.order_paid.concurrent_duplicate", cart_id=cart_id, payment_id=payment_id)
        return WebhookResult.ignored("Duplicate delivery")

    def _accept_payment(self, order: Order, payload: OrderPaidPayload, envelope: WebhookEnvelope) -> WebhookResult:
        payment_id = payload.payment_id
        order_id, cart_id = order.id, order.cart_id
        try:
            self._claim_event(envelope, payment_id)
            self.orders.set_order_state(order, self.config.paid_status_code)
            self.orders.add_order_payment(
                order,
                amount=order.total_paid,
                payment_method=self.config.payment_method_label(payload.method),
                transaction_id=payment_id,
            )
            self.db.commit()
        except IntegrityError:
            return self._duplicate(cart_id, payment_id)
        except (OrderStoreError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error(
                "razorpay.order_paid.state_change_failed",
                cart_id=cart_id,
                order_id=order_id,
                payment_id=payment_id,
                error=str(e),
            )
            return WebhookResult.failed(_diagnostic("Order Id", order_id, payment_id, e))

        logger.info(
            "razorpay.order_paid.payment_accepted",
            cart_id=cart_id,
            order_id=order_id,
            payment_id=payment_id,
        )
        return WebhookResult.processed(order_id)

    def _create_order(self, cart: Cart, payload: OrderPaidPayload, envelope: WebhookEnvelope) -> WebhookResult:
        payment_id = payload.payment_id
        method = payload.method
        cart_id = cart.id
        try:
            self._claim_event(envelope, payment_id)
            customer = self.orders.get_customer(cart.customer_id)
            order = self.orders.validate_order(
                cart,
                state=self.config.paid_status_code,
                amount_paid=cart.order_total(),
                payment_method=self.config.payment_method_label(method),
                message=f"Payment by Razorpay using {method}",
                extra={"transaction_id": payment_id},
                secure_key=customer.secure_key if customer is not None else None,
            )
            order_id = order.id
            self.db.commit()
        except (IntegrityError, DuplicateOrderError):
            return self._duplicate(cart_id, payment_id)
        except (OrderStoreError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error(
                "razorpay.order_paid.order_creation_failed",
                cart_id=cart_id,
                payment_id=payment_id,
                error=str(e),
            )
            return WebhookResult.failed(_diagnostic("Cart Id", cart_id, payment_id, e))

        # Link the Razorpay payment to the order created for this cart
        try:
            self.adapter.update_payment_notes(
                payment_id,
                {"prestashop_order_id": order_id, "prestashop_cart_id": cart_id},
            )
        except PaymentAPIError as e:
            logger.error(
                "razorpay.payment_notes.update_failed",
                cart_id=cart_id,
                order_id=order_id,
                payment_id=payment_id,
                error=str(e),
            )

        return WebhookResult.processed(order_id)


def _diagnostic(label: str, ref: object, payment_id: str, error: Exception) -> str:
    return f"{label}: {ref}\nRazorpay Payment Id: {payment_id}\nError: {error}\n"
