from __future__ import annotations

from typing import Optional, Protocol, Dict, Any


class SignatureVerificationError(ValueError):
    """Webhook signature does not match the configured secret."""


class PaymentAPIError(Exception):
    """A call to the payment provider API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PaymentAdapter(Protocol):
    def verify_webhook_signature(self, payload: bytes, signature: str, secret: str) -> None:
        """
        Verify the webhook signature over the raw body. Raises SignatureVerificationError on mismatch.
        """
        ...

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        """
        Return the provider's payment record.
        """
        ...

    def update_payment_notes(self, payment_id: str, notes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge notes into the provider's payment record. Raises PaymentAPIError on failure.
        """
        ...
