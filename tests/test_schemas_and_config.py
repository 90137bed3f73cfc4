import unittest

from support import order_paid_event

from paysync.config import Settings, WebhookConfig
from paysync.config.settings import validate_settings
from paysync.schemas_pkg import WebhookParseError, parse_envelope, parse_order_paid


class TestWebhookSchemas(unittest.TestCase):
    def test_envelope_keeps_event_and_payload(self):
        envelope = parse_envelope(order_paid_event())

        self.assertEqual(envelope.event, "order.paid")
        self.assertIn("payment", envelope.payload)

    def test_envelope_without_event_is_rejected(self):
        with self.assertRaises(WebhookParseError):
            parse_envelope({"payload": {}})

    def test_envelope_must_be_an_object(self):
        with self.assertRaises(WebhookParseError):
            parse_envelope(["order.paid"])

    def test_empty_payload_list_becomes_dict(self):
        envelope = parse_envelope({"event": "payment.failed", "payload": []})

        self.assertEqual(envelope.payload, {})

    def test_order_paid_exposes_references(self):
        payload = parse_order_paid(order_paid_event(method="upi")["payload"])

        self.assertEqual(payload.cart_id, 42)
        self.assertEqual(payload.payment_id, "pay_1")
        self.assertEqual(payload.method, "upi")

    def test_order_paid_requires_payment_id(self):
        event = order_paid_event()
        del event["payload"]["payment"]["entity"]["id"]

        with self.assertRaises(WebhookParseError) as ctx:
            parse_order_paid(event["payload"])

        self.assertIn("payment.entity.id", str(ctx.exception))

    def test_order_paid_rejects_non_numeric_cart(self):
        with self.assertRaises(WebhookParseError):
            parse_order_paid(order_paid_event(cart_id="abc")["payload"])

    def test_order_paid_rejects_out_of_range_cart(self):
        for cart_id in ("0", "-5", "99999999999999999999"):
            with self.assertRaises(WebhookParseError) as ctx:
                parse_order_paid(order_paid_event(cart_id=cart_id)["payload"])
            self.assertIn("prestashop_cart_id", str(ctx.exception))


class TestWebhookConfig(unittest.TestCase):
    def settings(self, **values):
        return Settings(_env_file=None, **values)

    def test_flag_must_be_on(self):
        on = WebhookConfig.from_settings(self.settings(ENABLE_RAZORPAY_WEBHOOK="ON"))
        off = WebhookConfig.from_settings(self.settings(ENABLE_RAZORPAY_WEBHOOK="yes"))

        self.assertTrue(on.webhook_enabled)
        self.assertFalse(off.webhook_enabled)

    def test_values_are_copied_from_settings(self):
        config = WebhookConfig.from_settings(self.settings(
            ENABLE_RAZORPAY_WEBHOOK="on",
            RAZORPAY_WEBHOOK_SECRET="s3cret",
            PS_OS_PAYMENT="5",
        ))

        self.assertEqual(config.webhook_secret, "s3cret")
        self.assertEqual(config.paid_status_code, 5)
        self.assertEqual(config.payment_method_label("wallet"), "razorpay.wallet")

    def test_unset_secret_becomes_empty_string(self):
        config = WebhookConfig.from_settings(self.settings(RAZORPAY_WEBHOOK_SECRET=None))

        self.assertEqual(config.webhook_secret, "")

    def test_enabled_webhook_without_secret_is_flagged(self):
        issues = validate_settings(self.settings(
            ENABLE_RAZORPAY_WEBHOOK="on",
            RAZORPAY_WEBHOOK_SECRET=None,
            ENVIRONMENT="development",
        ))

        self.assertEqual(len(issues), 1)
        self.assertIn("RAZORPAY_WEBHOOK_SECRET", issues[0])


if __name__ == "__main__":
    unittest.main()
