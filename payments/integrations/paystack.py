import json
import logging

import requests
from django.conf import settings
from requests import RequestException

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.paystack.co"
CHANNELS = ["card", "bank", "ussd", "mobile_money", "bank_transfer"]


class PaystackError(Exception): pass


def _secret_key() -> str:
    key = getattr(settings, "PAYSTACK_SECRET_KEY", "")
    if not key: raise PaystackError("Payment service not configured")
    return key


def _base_url() -> str:
    return (getattr(settings, "PAYSTACK_BASE_URL", "") or DEFAULT_BASE_URL).rstrip("/")


def _headers() -> dict:
    return {
        "Authorization": f"Bearer {_secret_key()}",
        "Content-Type": "application/json",
    }


def _result(resp, action: str) -> dict:
    try: body = resp.json()
    except Exception: body = {"raw": resp.text}
    if body.get("status") and body.get("data") is not None:
        return body["data"]
    message = body.get("message") or f"HTTP {resp.status_code}"
    raise PaystackError(f"{action} failed: {message}. Response: {json.dumps(body)[:800]}")


def initialize_transaction(*, email, amount, currency="NGN", reference=None,
                           callback_url=None, metadata=None) -> dict:
    """Start a hosted checkout. ``amount`` is in kobo."""
    headers = _headers()
    payload = {
        "email": email,
        "amount": int(amount),
        "currency": currency or "NGN",
        "channels": CHANNELS,
    }
    if reference: payload["reference"] = reference
    callback_url = callback_url or getattr(settings, "PAYSTACK_CALLBACK_URL", "")
    if callback_url: payload["callback_url"] = callback_url
    if metadata: payload["metadata"] = metadata

    url = f"{_base_url()}/transaction/initialize"
    try:
        resp = requests.post(url, headers=headers, json=payload, timeout=30)
    except RequestException as e:
        raise PaystackError(f"Gateway request failed: {e}")
    data = _result(resp, "Payment initialization")
    return {
        "authorization_url": data.get("authorization_url", ""),
        "access_code": data.get("access_code", ""),
        "reference": data.get("reference") or reference or "",
    }


def verify_transaction(reference: str) -> dict:
    """Fetch the gateway's view of a transaction (``status``, ``amount``, ``metadata`` ...)."""
    url = f"{_base_url()}/transaction/verify/{reference}"
    try:
        resp = requests.get(url, headers=_headers(), timeout=30)
    except RequestException as e:
        raise PaystackError(f"Gateway request failed: {e}")
    return _result(resp, "Payment verification")
