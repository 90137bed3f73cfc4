"""
Razorpay webhook envelope and per-event payload schemas.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class WebhookParseError(ValueError):
    """Raised when a webhook body is missing fields required by its event type."""


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("payload", mode="before")
    @classmethod
    def empty_payload(cls, v):
        # Razorpay serializes empty objects as []
        return {} if v in (None, []) else v


class PaymentNotes(BaseModel):
    model_config = ConfigDict(extra="allow")

    # carts.id is a 32-bit integer column
    prestashop_cart_id: int = Field(..., gt=0, le=2**31 - 1)


class PaymentEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    method: str = Field(..., min_length=1)
    amount: Optional[int] = None
    currency: Optional[str] = None
    order_id: Optional[str] = None
    notes: PaymentNotes

    @field_validator("notes", mode="before")
    @classmethod
    def empty_notes(cls, v):
        return {} if v in (None, []) else v


class PaymentWrapper(BaseModel):
    entity: PaymentEntity


class OrderPaidPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    payment: PaymentWrapper

    @property
    def cart_id(self) -> int:
        return self.payment.entity.notes.prestashop_cart_id

    @property
    def payment_id(self) -> str:
        return self.payment.entity.id

    @property
    def method(self) -> str:
        return self.payment.entity.method


def parse_envelope(data: Any) -> WebhookEnvelope:
    if not isinstance(data, dict):
        raise WebhookParseError("Webhook body must be a JSON object")
    try:
        return WebhookEnvelope.model_validate(data)
    except ValidationError as e:
        raise WebhookParseError(f"Invalid webhook envelope: {e.errors()}") from e


def parse_order_paid(payload: Dict[str, Any]) -> OrderPaidPayload:
    try:
        return OrderPaidPayload.model_validate(payload)
    except ValidationError as e:
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise WebhookParseError(f"Invalid order.paid payload: {missing}") from e
