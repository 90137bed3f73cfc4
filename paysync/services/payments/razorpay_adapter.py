from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Dict, Any, Optional

import anyio
import httpx

from paysync.config import settings
from .base import PaymentAPIError, SignatureVerificationError


class RazorpayAPIError(PaymentAPIError):
    pass


class RazorpayAdapter:
    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15,
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self._base = (base_url or settings.RAZORPAY_API_BASE).rstrip("/")
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _auth_header(self) -> Dict[str, str]:
        if not self.configured:
            raise RazorpayAPIError("Razorpay not configured")
        token = base64.b64encode(f"{self.key_id}:{self.key_secret}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = self._auth_header()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                r = await client.request(method, f"{self._base}{path}", json=json, headers=headers)
                r.raise_for_status()
                body = r.json()
        except httpx.HTTPStatusError as e:
            detail = _error_description(e.response)
            raise RazorpayAPIError(
                f"{method} {path} failed with {e.response.status_code}: {detail}",
                status_code=e.response.status_code,
            ) from e
        except ValueError as e:
            raise RazorpayAPIError(f"{method} {path} returned a non-JSON body") from e
        except httpx.HTTPError as e:
            raise RazorpayAPIError(f"{method} {path} failed: {e}") from e
        if not isinstance(body, dict):
            raise RazorpayAPIError(f"{method} {path} returned an unexpected body")
        return body

    @staticmethod
    def verify_webhook_signature(payload: bytes, signature: str, secret: str) -> None:
        if not secret:
            raise SignatureVerificationError("Webhook secret not configured")
        digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
        if not hmac.compare_digest(digest, (signature or "").strip()):
            raise SignatureVerificationError("Invalid signature")

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        # Synchronous wrapper; callers run in a worker thread without an event loop
        return anyio.run(self._request, "GET", f"/v1/payments/{payment_id}")

    def update_payment_notes(self, payment_id: str, notes: Dict[str, Any]) -> Dict[str, Any]:
        return anyio.run(self._update_payment_notes_async, payment_id, notes)

    async def _update_payment_notes_async(self, payment_id: str, notes: Dict[str, Any]) -> Dict[str, Any]:
        payment = await self._request("GET", f"/v1/payments/{payment_id}")
        merged = dict(payment.get("notes") or {})
        merged.update({k: str(v) for k, v in notes.items()})
        return await self._request("PATCH", f"/v1/payments/{payment_id}", {"notes": merged})


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("description"):
        return err["description"]
    return response.text
