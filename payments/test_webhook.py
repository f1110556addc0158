import hashlib
import hmac
import json
from unittest.mock import Mock, call, patch

from django.test import TestCase, override_settings
from django.urls import reverse

from orders.models import Order, OrderStatus, PaymentStatus
from orders.services import OrderServiceError
from .models import WebhookEvent
from .utils import verify_signature
from .webhook import PaystackWebhookHandler

SECRET = "sk_test_webhook_secret"


def sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()


class SignatureTests(TestCase):
    def setUp(self):
        self.body = json.dumps({"event": "charge.success", "data": {"reference": "GAB_a_1"}}).encode()
        self.sig = sign(self.body)

    def test_valid_signature_accepted(self):
        self.assertTrue(verify_signature(self.body, self.sig, SECRET))

    def test_any_single_byte_change_to_body_rejected(self):
        for i in range(len(self.body)):
            mutated = self.body[:i] + bytes([self.body[i] ^ 0x01]) + self.body[i + 1:]
            self.assertFalse(verify_signature(mutated, self.sig, SECRET), f"byte {i}")

    def test_any_single_char_change_to_signature_rejected(self):
        for i, ch in enumerate(self.sig):
            repl = "0" if ch != "0" else "1"
            mutated = self.sig[:i] + repl + self.sig[i + 1:]
            self.assertFalse(verify_signature(self.body, mutated, SECRET), f"char {i}")

    def test_missing_secret_or_signature_fails_closed(self):
        self.assertFalse(verify_signature(self.body, self.sig, ""))
        self.assertFalse(verify_signature(self.body, self.sig, None))
        self.assertFalse(verify_signature(self.body, "", SECRET))
        self.assertFalse(verify_signature(self.body, None, SECRET))

    def test_non_ascii_signature_rejected(self):
        self.assertFalse(verify_signature(self.body, "é" * 128, SECRET))


class PaystackWebhookTests(TestCase):
    def setUp(self):
        self.order = Order.objects.create(
            order_id="abc123",
            customer_id="cust-1",
            customer_name="Ada",
            customer_phone="08031234567",
            final_amount=500000,
        )

    def _event(self, event="charge.success", reference="GAB_abc123_1700000000000", metadata=None, amount=500000):
        return {
            "event": event,
            "data": {
                "reference": reference,
                "amount": amount,
                "customer": {"email": "ada@example.com"},
                "metadata": metadata if metadata is not None else {},
            },
        }

    def _post(self, payload, signature=None, raw: bytes | None = None):
        body = raw if raw is not None else json.dumps(payload).encode()
        headers = {}
        sig = sign(body) if signature is None else signature
        if sig:
            headers["HTTP_X_PAYSTACK_SIGNATURE"] = sig
        return self.client.post(
            reverse("paystack_webhook"),
            data=body,
            content_type="application/json",
            **headers,
        )

    def test_success_marks_paid_and_confirmed(self):
        resp = self._post(self._event())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "success"})

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PAID)
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)
        self.assertEqual(self.order.payment_reference, "GAB_abc123_1700000000000")
        self.assertEqual(self.order.amount_paid, 500000)
        self.assertEqual(len(self.order.order_history), 1)
        self.assertEqual(self.order.order_history[0]["status"], "confirmed")
        self.assertEqual(self.order.order_history[0]["staff_id"], "system")

    def test_metadata_order_id_preferred_over_reference(self):
        other = Order.objects.create(order_id="from_meta", customer_id="cust-2")
        resp = self._post(self._event(metadata={"orderId": "from_meta"}))
        self.assertEqual(resp.status_code, 200)
        other.refresh_from_db()
        self.order.refresh_from_db()
        self.assertEqual(other.payment_status, PaymentStatus.PAID)
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)

    def test_order_id_containing_delimiter_resolved_from_reference(self):
        order = Order.objects.create(order_id="abc_123", customer_id="cust-3")
        self._post(self._event(reference="GAB_abc_123_1700000000000"))
        order.refresh_from_db()
        self.assertEqual(order.payment_status, PaymentStatus.PAID)

    def test_payment_update_runs_before_status_update(self):
        manager = Mock()
        with patch("payments.webhook.update_order_payment_status") as pay, \
                patch("payments.webhook.update_order_status") as status:
            manager.attach_mock(pay, "pay")
            manager.attach_mock(status, "status")
            resp = self._post(self._event())

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(manager.mock_calls, [
            call.pay("abc123", "paid", "GAB_abc123_1700000000000", 500000),
            call.status("abc123", "confirmed", "system", "Payment confirmed - Order ready for processing"),
        ])

    def test_failed_payment_update_skips_status_update(self):
        with patch("payments.webhook.update_order_payment_status", side_effect=OrderServiceError("boom")) as pay, \
                patch("payments.webhook.update_order_status") as status, \
                patch("notifications.whatsapp.send_pickup_confirmation") as notify:
            resp = self._post(self._event(metadata={"customerPhone": "08031234567", "customerName": "Ada"}))

        self.assertEqual(resp.status_code, 200)
        pay.assert_called_once()
        status.assert_not_called()
        notify.assert_not_called()

    def test_failed_status_update_rolls_back_payment(self):
        with patch("payments.webhook.update_order_status", side_effect=OrderServiceError("db down")):
            resp = self._post(self._event())

        self.assertEqual(resp.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertFalse(WebhookEvent.objects.exists())

    def test_charge_failed_marks_failed_without_status_change(self):
        with patch("payments.webhook.update_order_payment_status") as pay, \
                patch("payments.webhook.update_order_status") as status:
            resp = self._post(self._event(event="charge.failed"))

        self.assertEqual(resp.status_code, 200)
        pay.assert_called_once_with("abc123", "failed", "GAB_abc123_1700000000000", 0)
        status.assert_not_called()

    def test_charge_failed_persists_failed_status(self):
        self._post(self._event(event="charge.failed"))
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.FAILED)
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertIsNone(self.order.amount_paid)
        self.assertEqual(self.order.order_history, [])

    def test_unresolvable_order_id_acknowledged_without_updates(self):
        with patch("payments.webhook.update_order_payment_status") as pay, \
                patch("payments.webhook.update_order_status") as status:
            resp = self._post(self._event(reference="T1234567890", metadata={}))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "success"})
        pay.assert_not_called()
        status.assert_not_called()

    def test_unknown_order_acknowledged(self):
        resp = self._post(self._event(reference="GAB_missing_1700000000000"))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(WebhookEvent.objects.exists())

    def test_redelivery_does_not_duplicate_history(self):
        payload = self._event()
        self.assertEqual(self._post(payload).status_code, 200)
        self.assertEqual(self._post(payload).status_code, 200)

        self.order.refresh_from_db()
        self.assertEqual(len(self.order.order_history), 1)
        self.assertEqual(WebhookEvent.objects.count(), 1)

    def test_pickup_confirmation_sent_on_success(self):
        meta = {"customerPhone": "08031234567", "customerName": "Ada", "orderNumber": "GAB251019000001"}
        with patch("notifications.whatsapp.send_pickup_confirmation") as notify:
            self._post(self._event(metadata=meta))
        notify.assert_called_once_with("08031234567", "Ada", "GAB251019000001")

    def test_payment_reminder_sent_on_failure(self):
        meta = {"phoneNumber": "08031234567", "customerName": "Ada", "orderId": "abc123", "amount": 500000}
        with patch("notifications.whatsapp.send_payment_reminder") as notify:
            self._post(self._event(event="charge.failed", metadata=meta))
        notify.assert_called_once_with("08031234567", "Ada", "abc123", 500000)

    def test_notification_failure_does_not_change_response(self):
        meta = {"customerPhone": "08031234567", "customerName": "Ada"}
        with patch("notifications.whatsapp.send_pickup_confirmation", side_effect=RuntimeError("whatsapp down")):
            resp = self._post(self._event(metadata=meta))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "success"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)

    def test_string_metadata_is_decoded(self):
        meta = json.dumps({"orderId": "abc123"})
        self._post(self._event(reference="T999", metadata=meta))
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PAID)

    def test_transfer_and_unknown_events_ignored(self):
        for event in ("transfer.success", "transfer.failed", "subscription.create"):
            resp = self._post(self._event(event=event))
            self.assertEqual(resp.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)

    def test_missing_signature_rejected(self):
        resp = self._post(self._event(), signature="")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Missing signature"})

    def test_invalid_signature_rejected_without_mutation(self):
        resp = self._post(self._event(), signature="deadbeef")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid signature"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)

    @override_settings(PAYSTACK_SECRET_KEY="")
    def test_missing_secret_rejects_everything(self):
        resp = self._post(self._event())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid signature"})

    def test_invalid_json_rejected(self):
        resp = self._post(None, raw=b"{not json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid payload"})

    def test_json_that_is_not_an_object_rejected(self):
        for raw in (b"[]", b'"charge.success"', b"42"):
            resp = self._post(None, raw=raw)
            self.assertEqual(resp.status_code, 400, raw)
            self.assertEqual(resp.json(), {"error": "Invalid payload"})

    def test_non_string_event_type_ignored(self):
        for event in (["charge.success"], {"type": "charge.success"}, 7):
            payload = self._event()
            payload["event"] = event
            resp = self._post(payload)
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.json(), {"status": "success"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)

    def test_numeric_reference_without_metadata_acknowledged(self):
        with patch("payments.webhook.update_order_payment_status") as pay:
            resp = self._post({"event": "charge.success", "data": {"reference": 12345, "amount": 100}})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "success"})
        pay.assert_not_called()

    def test_numeric_reference_with_metadata_order_id_applied(self):
        self._post(self._event(reference=98765, metadata={"orderId": "abc123"}))
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PAID)
        self.assertEqual(self.order.payment_reference, "98765")

    def test_rejected_order_update_is_not_reported_as_duplicate(self):
        with self.assertLogs("payments.webhook", level="INFO") as logs:
            resp = self._post(self._event(reference="GAB_abc123_2", amount=-5))

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(any("Failed to apply charge.success" in line for line in logs.output))
        self.assertFalse(any("duplicate" in line.lower() for line in logs.output))
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PENDING)
        self.assertFalse(WebhookEvent.objects.exists())

    def test_unexpected_error_returns_500(self):
        with patch.object(PaystackWebhookHandler, "dispatch", side_effect=RuntimeError("boom")):
            resp = self._post(self._event())
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Webhook processing failed"})

    def test_get_not_allowed(self):
        resp = self.client.get(reverse("paystack_webhook"))
        self.assertEqual(resp.status_code, 405)


class HandlerInjectionTests(TestCase):
    def test_handler_uses_injected_secret_and_notifier(self):
        Order.objects.create(order_id="inj1", customer_id="c")
        notifier = Mock()
        handler = PaystackWebhookHandler("another-secret", notifier=notifier)
        body = json.dumps({
            "event": "charge.success",
            "data": {
                "reference": "GAB_inj1_1",
                "amount": 1000,
                "metadata": {"customerPhone": "08031234567", "customerName": "Bo"},
            },
        }).encode()

        self.assertEqual(handler.handle(body, sign(body))[0], 400)
        status, payload = handler.handle(body, sign(body, "another-secret"))

        self.assertEqual((status, payload), (200, {"status": "success"}))
        notifier.send_pickup_confirmation.assert_called_once_with("08031234567", "Bo", "inj1")
