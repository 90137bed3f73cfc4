"""
Webhook configuration value object.

Built once from Settings and handed to the webhook handler, so the handler
never reads global configuration on its own.
"""
from __future__ import annotations

from dataclasses import dataclass

from .settings import Settings


@dataclass(frozen=True)
class WebhookConfig:
    webhook_enabled: bool
    webhook_secret: str
    paid_status_code: int
    payment_method_prefix: str = "razorpay"

    @classmethod
    def from_settings(cls, s: Settings) -> "WebhookConfig":
        return cls(
            webhook_enabled=s.ENABLE_RAZORPAY_WEBHOOK == "on",
            webhook_secret=s.RAZORPAY_WEBHOOK_SECRET or "",
            paid_status_code=int(s.PS_OS_PAYMENT),
            payment_method_prefix=s.RAZORPAY_PAYMENT_METHOD_PREFIX,
        )

    def payment_method_label(self, method: str) -> str:
        # netbanking -> razorpay.netbanking
        return f"{self.payment_method_prefix}.{method}"
