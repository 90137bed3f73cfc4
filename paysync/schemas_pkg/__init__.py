# paysync/schemas_pkg/__init__.py

# Webhook schemas
from .webhooks import (
    WebhookParseError,
    WebhookEnvelope,
    PaymentEntity,
    OrderPaidPayload,
    parse_envelope,
    parse_order_paid,
)

__all__ = [
    "WebhookParseError",
    "WebhookEnvelope",
    "PaymentEntity",
    "OrderPaidPayload",
    "parse_envelope",
    "parse_order_paid",
]
