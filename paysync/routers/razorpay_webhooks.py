"""
Razorpay webhooks: POST /v1/webhooks/razorpay
- Validates HMAC signature using RAZORPAY_WEBHOOK_SECRET
- Idempotent via PspEvent table keyed by provider:event:payment_id
- On order.paid, creates the order for the paid cart or marks its order as paid
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from paysync.config import WebhookConfig
from paysync.deps import get_payment_adapter, get_webhook_config, get_webhook_handler
from paysync.services.payments.razorpay_adapter import RazorpayAdapter
from paysync.services.webhook_handler import (
    RazorpayWebhookHandler,
    WebhookOutcome,
    WebhookResult,
)

router = APIRouter(tags=["Razorpay Webhooks"])

SIGNATURE_HEADER = "X-Razorpay-Signature"


def to_response(result: WebhookResult) -> Response:
    if result.outcome == WebhookOutcome.REJECTED:
        return PlainTextResponse(result.reason or "", status_code=400)
    if result.outcome == WebhookOutcome.FAILED:
        # 200 so Razorpay does not re-deliver a request that cannot succeed;
        # the body is for operators reading delivery logs
        return PlainTextResponse(result.reason or "", status_code=200)
    return Response(status_code=200)


@router.post("/razorpay", include_in_schema=True)
async def webhook_razorpay(
    request: Request,
    handler: RazorpayWebhookHandler = Depends(get_webhook_handler),
):
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    result = await run_in_threadpool(handler.handle, body, signature)
    return to_response(result)


@router.get("/razorpay/status")
async def razorpay_webhook_status(
    config: WebhookConfig = Depends(get_webhook_config),
    adapter: RazorpayAdapter = Depends(get_payment_adapter),
):
    """Non-sensitive status of the Razorpay webhook configuration.
    Returns which settings are present (true/false) without revealing values.
    """
    return {
        "enabled": config.webhook_enabled,
        "webhook_secret_present": bool(config.webhook_secret),
        "api_keys_present": adapter.configured,
        "paid_status_code": config.paid_status_code,
    }
