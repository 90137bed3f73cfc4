from fastapi import Depends
from sqlalchemy.orm import Session
from .db import get_db
from .config import settings, WebhookConfig
from .services.payments.razorpay_adapter import RazorpayAdapter
from .services.webhook_handler import RazorpayWebhookHandler


def get_webhook_config() -> WebhookConfig:
    """
    Webhook configuration snapshot for the current request.
    Override in tests with app.dependency_overrides.
    """
    return WebhookConfig.from_settings(settings)


def get_payment_adapter() -> RazorpayAdapter:
    return RazorpayAdapter()


def get_webhook_handler(
    db: Session = Depends(get_db),
    config: WebhookConfig = Depends(get_webhook_config),
    adapter: RazorpayAdapter = Depends(get_payment_adapter),
) -> RazorpayWebhookHandler:
    return RazorpayWebhookHandler(config=config, adapter=adapter, db=db)
