import unittest
from unittest import mock

from fastapi.testclient import TestClient

from support import (
    encode,
    make_config,
    make_session_factory,
    order_paid_event,
    seed_cart,
    sign,
)

from paysync.deps import get_db, get_payment_adapter, get_webhook_config
from paysync.main import app
from paysync.models import Order
from paysync.services.payments.razorpay_adapter import RazorpayAdapter

URL = "/v1/webhooks/razorpay"


class TestRazorpayWebhookRoute(unittest.TestCase):
    def setUp(self):
        self.Session = make_session_factory()
        with self.Session() as db:
            seed_cart(db)

        self.adapter = RazorpayAdapter(key_id="rzp_test_key", key_secret="rzp_test_secret")
        self.adapter.update_payment_notes = mock.MagicMock(return_value={})

        def override_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_webhook_config] = lambda: make_config()
        app.dependency_overrides[get_payment_adapter] = lambda: self.adapter
        self.addCleanup(app.dependency_overrides.clear)

        self.client = TestClient(app)

    def post(self, body: bytes, signature=None):
        headers = {"Content-Type": "application/json"}
        if signature is not None:
            headers["X-Razorpay-Signature"] = signature
        return self.client.post(URL, content=body, headers=headers)

    def order_count(self):
        with self.Session() as db:
            return db.query(Order).count()

    def test_order_paid_creates_order(self):
        body = encode(order_paid_event())

        res = self.post(body, sign(body))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.content, b"")
        self.assertEqual(self.order_count(), 1)
        self.assertIn("X-Request-ID", res.headers)

    def test_bad_signature_returns_400(self):
        body = encode(order_paid_event())

        res = self.post(body, sign(body, secret="wrong"))

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.text, "Signature Verification failed")
        self.assertEqual(self.order_count(), 0)

    def test_invalid_json_returns_empty_200(self):
        res = self.post(b"not json", "whatever")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.content, b"")
        self.assertEqual(self.order_count(), 0)

    def test_missing_signature_is_ignored(self):
        res = self.post(encode(order_paid_event()))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(self.order_count(), 0)

    def test_failure_echoes_diagnostic(self):
        body = encode(order_paid_event(cart_id="404"))

        res = self.post(body, sign(body))

        self.assertEqual(res.status_code, 200)
        self.assertIn("Cart Id: 404", res.text)
        self.assertIn("Razorpay Payment Id: pay_1", res.text)

    def test_replay_keeps_single_order(self):
        body = encode(order_paid_event())

        self.post(body, sign(body))
        res = self.post(body, sign(body))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(self.order_count(), 1)

    def test_status_reports_presence_only(self):
        res = self.client.get(f"{URL}/status")

        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertTrue(data["enabled"])
        self.assertTrue(data["webhook_secret_present"])
        self.assertTrue(data["api_keys_present"])
        self.assertNotIn("whsec_test", res.text)

    def test_health(self):
        res = self.client.get("/health")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "ok")


if __name__ == "__main__":
    unittest.main()
