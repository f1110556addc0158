import logging
import re

import requests
from django.conf import settings
from requests import RequestException

from orders.utils import format_naira

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://graph.facebook.com/v17.0"


class WhatsAppError(Exception): pass


def _config():
    token = getattr(settings, "WHATSAPP_ACCESS_TOKEN", "")
    phone_number_id = getattr(settings, "WHATSAPP_PHONE_NUMBER_ID", "")
    if not token or not phone_number_id:
        raise WhatsAppError("WhatsApp service not configured")
    base = (getattr(settings, "WHATSAPP_BASE_URL", "") or DEFAULT_BASE_URL).rstrip("/")
    return token, phone_number_id, base


def _site_url() -> str:
    return (getattr(settings, "SITE_URL", "") or "https://gabzlaundromat.com").rstrip("/")


def send_text_message(to: str, message: str) -> dict:
    token, phone_number_id, base = _config()
    if not is_valid_whatsapp_number(to):
        raise WhatsAppError(f"Invalid WhatsApp number: {to!r}")
    payload = {
        "messaging_product": "whatsapp",
        "to": format_phone_for_whatsapp(to),
        "type": "text",
        "text": {"body": message},
    }
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    try:
        resp = requests.post(f"{base}/{phone_number_id}/messages", json=payload, headers=headers, timeout=15)
    except RequestException as e:
        raise WhatsAppError(f"WhatsApp request failed: {e}")
    try: data = resp.json()
    except Exception: data = {"raw": resp.text}
    if resp.ok and data.get("messages"):
        return data
    raise WhatsAppError(f"Failed to send WhatsApp message: HTTP {resp.status_code}. Response: {str(data)[:400]}")


def send_pickup_confirmation(customer_phone, customer_name, order_number) -> dict:
    message = (
        f"Hi {customer_name}! 🚚\n\n"
        f"Great news! Your laundry has been picked up.\n\n"
        f"📋 Order #{order_number}\n"
        f"Status: Picked up and heading to our facility\n\n"
        f"We'll notify you once processing begins. Your clothes are in good hands!\n\n"
        f"Track your order: {_site_url()}/orders/{order_number}"
    )
    return send_text_message(customer_phone, message)


def send_payment_reminder(customer_phone, customer_name, order_number, amount, payment_url=None) -> dict:
    pay_line = f"Pay now: {payment_url}" if payment_url else "Please complete payment to proceed with your order."
    message = (
        f"Hi {customer_name}! 💳\n\n"
        f"Payment reminder for your order.\n\n"
        f"📋 Order #{order_number}\n"
        f"Amount Due: {format_naira(amount)}\n\n"
        f"{pay_line}\n\n"
        f"Payment methods available:\n"
        f"• Online payment (Card/Bank Transfer)\n"
        f"• POS on delivery\n"
        f"• Bank transfer\n\n"
        f"Need assistance? Reply to this message."
    )
    return send_text_message(customer_phone, message)


def format_phone_for_whatsapp(phone: str) -> str:
    """Normalize a Nigerian number to the ``234XXXXXXXXXX`` form WhatsApp expects."""
    cleaned = re.sub(r"[^\d+]", "", phone or "")
    if cleaned.startswith("+234"):
        return cleaned[1:]
    if cleaned.startswith("234"):
        return cleaned
    if cleaned.startswith("0"):
        return "234" + cleaned[1:]
    return "234" + cleaned


def is_valid_whatsapp_number(phone: str) -> bool:
    return bool(re.fullmatch(r"234[789]\d{9}", format_phone_for_whatsapp(phone)))
