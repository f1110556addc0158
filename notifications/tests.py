from unittest.mock import Mock, patch

from django.test import SimpleTestCase, override_settings
from requests import RequestException

from . import whatsapp
from .whatsapp import WhatsAppError

WHATSAPP_SETTINGS = {
    "WHATSAPP_ACCESS_TOKEN": "wa-token",
    "WHATSAPP_PHONE_NUMBER_ID": "12345",
    "WHATSAPP_BASE_URL": "https://graph.example.com/v17.0",
    "SITE_URL": "https://gabz.example.com",
}


def _response(ok=True, status_code=200, body=None):
    resp = Mock()
    resp.ok = ok
    resp.status_code = status_code
    resp.json.return_value = body if body is not None else {"messages": [{"id": "wamid.1"}]}
    return resp


class PhoneFormatTests(SimpleTestCase):
    def test_nigerian_numbers_normalized(self):
        self.assertEqual(whatsapp.format_phone_for_whatsapp("08031234567"), "2348031234567")
        self.assertEqual(whatsapp.format_phone_for_whatsapp("+234 803 123 4567"), "2348031234567")
        self.assertEqual(whatsapp.format_phone_for_whatsapp("2348031234567"), "2348031234567")
        self.assertEqual(whatsapp.format_phone_for_whatsapp("8031234567"), "2348031234567")

    def test_validity(self):
        self.assertTrue(whatsapp.is_valid_whatsapp_number("08031234567"))
        self.assertFalse(whatsapp.is_valid_whatsapp_number("0603123456"))
        self.assertFalse(whatsapp.is_valid_whatsapp_number(""))


@override_settings(**WHATSAPP_SETTINGS)
class SendMessageTests(SimpleTestCase):
    def test_text_message_posted_to_cloud_api(self):
        with patch("notifications.whatsapp.requests.post", return_value=_response()) as post:
            data = whatsapp.send_text_message("08031234567", "hello")

        self.assertEqual(data["messages"][0]["id"], "wamid.1")
        self.assertEqual(post.call_args.args[0], "https://graph.example.com/v17.0/12345/messages")
        payload = post.call_args.kwargs["json"]
        self.assertEqual(payload["to"], "2348031234567")
        self.assertEqual(payload["text"], {"body": "hello"})
        self.assertEqual(post.call_args.kwargs["headers"]["Authorization"], "Bearer wa-token")

    def test_pickup_confirmation_mentions_order(self):
        with patch("notifications.whatsapp.requests.post", return_value=_response()) as post:
            whatsapp.send_pickup_confirmation("08031234567", "Ada", "GAB251019000001")
        body = post.call_args.kwargs["json"]["text"]["body"]
        self.assertIn("Hi Ada!", body)
        self.assertIn("Order #GAB251019000001", body)
        self.assertIn("https://gabz.example.com/orders/GAB251019000001", body)

    def test_payment_reminder_formats_amount(self):
        with patch("notifications.whatsapp.requests.post", return_value=_response()) as post:
            whatsapp.send_payment_reminder("08031234567", "Ada", "GAB1", 500000, payment_url="https://pay.example/x")
        body = post.call_args.kwargs["json"]["text"]["body"]
        self.assertIn("Amount Due: ₦5,000", body)
        self.assertIn("Pay now: https://pay.example/x", body)

    def test_rejected_response_raises(self):
        bad = _response(ok=False, status_code=400, body={"error": {"message": "bad number"}})
        with patch("notifications.whatsapp.requests.post", return_value=bad):
            with self.assertRaises(WhatsAppError):
                whatsapp.send_text_message("08031234567", "hello")

    def test_invalid_number_raises_without_request(self):
        with patch("notifications.whatsapp.requests.post") as post:
            with self.assertRaises(WhatsAppError):
                whatsapp.send_text_message("12345", "hello")
        post.assert_not_called()

    def test_network_error_raises(self):
        with patch("notifications.whatsapp.requests.post", side_effect=RequestException("down")):
            with self.assertRaises(WhatsAppError):
                whatsapp.send_text_message("08031234567", "hello")


@override_settings(WHATSAPP_ACCESS_TOKEN="", WHATSAPP_PHONE_NUMBER_ID="")
class NotConfiguredTests(SimpleTestCase):
    def test_not_configured_raises_without_request(self):
        with patch("notifications.whatsapp.requests.post") as post:
            with self.assertRaises(WhatsAppError):
                whatsapp.send_pickup_confirmation("08031234567", "Ada", "GAB1")
        post.assert_not_called()
