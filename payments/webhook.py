import json
import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from notifications import whatsapp
from orders.models import OrderStatus, PaymentStatus
from orders.services import OrderServiceError, update_order_payment_status, update_order_status
from .models import WebhookEvent
from .utils import parse_order_id, verify_signature

logger = logging.getLogger(__name__)

CHARGE_SUCCESS = "charge.success"
CHARGE_FAILED = "charge.failed"
TRANSFER_SUCCESS = "transfer.success"
TRANSFER_FAILED = "transfer.failed"

SYSTEM_ACTOR = "system"
CONFIRMED_NOTE = "Payment confirmed - Order ready for processing"

APPLIED, DUPLICATE, NOT_APPLIED = "applied", "duplicate", "not_applied"


def _metadata(data: dict) -> dict:
    # Paystack echoes metadata back as given at checkout: dict, JSON string or ""
    meta = data.get("metadata")
    if isinstance(meta, str):
        try:
            meta = json.loads(meta)
        except ValueError:
            meta = None
    return meta if isinstance(meta, dict) else {}


def _reference(data: dict) -> str:
    reference = data.get("reference")
    return str(reference) if reference is not None else ""


def _amount(data: dict) -> int:
    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, int):
        return 0
    return amount


def resolve_order_id(metadata: dict, reference: str | None) -> str | None:
    order_id = metadata.get("orderId")
    if order_id:
        return str(order_id)
    order_id = parse_order_id(reference)
    if order_id:
        logger.info("Extracted order id %s from reference %s", order_id, reference)
    return order_id


class PaystackWebhookHandler:
    """Apply Paystack payment events to orders.

    ``secret_key`` verifies the ``x-paystack-signature`` header; ``notifier``
    is anything exposing ``send_pickup_confirmation`` and
    ``send_payment_reminder`` (the WhatsApp module by default).
    """

    def __init__(self, secret_key: str | None, notifier=whatsapp):
        self.secret_key = secret_key
        self.notifier = notifier

    def handle(self, body: bytes, signature: str | None) -> tuple[int, dict]:
        """Process one raw webhook delivery; returns ``(http_status, json_body)``."""
        try:
            if not signature:
                logger.error("Paystack webhook rejected: missing signature header")
                return 400, {"error": "Missing signature"}
            if not verify_signature(body, signature, self.secret_key):
                logger.error("Paystack webhook rejected: invalid signature")
                return 400, {"error": "Invalid signature"}

            try:
                event = json.loads(body)
            except (ValueError, UnicodeDecodeError):
                logger.error("Paystack webhook rejected: body is not valid JSON")
                return 400, {"error": "Invalid payload"}
            if not isinstance(event, dict):
                logger.error("Paystack webhook rejected: body is not a JSON object")
                return 400, {"error": "Invalid payload"}

            event_type = event.get("event")
            data = event.get("data")
            self.dispatch(event_type if isinstance(event_type, str) else None,
                          data if isinstance(data, dict) else {})
            return 200, {"status": "success"}
        except Exception:
            logger.exception("Paystack webhook processing failed")
            return 500, {"error": "Webhook processing failed"}

    def dispatch(self, event_type, data: dict) -> None:
        logger.info("Paystack event %s (reference=%s)", event_type, data.get("reference"))
        handlers = {
            CHARGE_SUCCESS: self.handle_charge_success,
            CHARGE_FAILED: self.handle_charge_failed,
            TRANSFER_SUCCESS: self.handle_transfer,
            TRANSFER_FAILED: self.handle_transfer,
        }
        handler = handlers.get(event_type)
        if handler is None:
            logger.warning("Unhandled Paystack event: %s", event_type)
            return
        handler(data)

    def handle_charge_success(self, data: dict) -> bool:
        """Mark the order paid, then confirmed. Returns True when state changed."""
        reference = _reference(data)
        metadata = _metadata(data)
        order_id = resolve_order_id(metadata, reference)
        if not order_id:
            logger.error("No order id in metadata or reference %r; event dropped", reference)
            return False

        amount = _amount(data)

        def mutate():
            update_order_payment_status(order_id, PaymentStatus.PAID, reference, amount)
            update_order_status(order_id, OrderStatus.CONFIRMED, SYSTEM_ACTOR, CONFIRMED_NOTE)

        outcome = self._apply(CHARGE_SUCCESS, reference, order_id, amount, data, mutate)
        if outcome != APPLIED:
            return False

        logger.info("Payment processing completed for order %s", order_id)
        phone, name = self._contact(metadata)
        if phone and name:
            self._notify(self.notifier.send_pickup_confirmation, phone, name,
                         metadata.get("orderNumber") or metadata.get("orderId") or order_id)
        else:
            logger.info("No customer phone/name in metadata for order %s; skipping WhatsApp", order_id)
        return True

    def handle_charge_failed(self, data: dict) -> bool:
        """Mark the order's payment failed; fulfillment status is left alone."""
        reference = _reference(data)
        metadata = _metadata(data)
        order_id = resolve_order_id(metadata, reference)
        if not order_id:
            logger.error("No order id in metadata or reference %r; event dropped", reference)
            return False

        def mutate():
            update_order_payment_status(order_id, PaymentStatus.FAILED, reference, 0)

        outcome = self._apply(CHARGE_FAILED, reference, order_id, 0, data, mutate)
        if outcome == DUPLICATE:
            return False

        logger.info("Payment failed for order %s", order_id)
        phone, name = self._contact(metadata)
        if phone and name:
            self._notify(self.notifier.send_payment_reminder, phone, name,
                         metadata.get("orderNumber") or metadata.get("orderId") or order_id,
                         metadata.get("amount") or 0)
        return outcome == APPLIED

    def handle_transfer(self, data: dict) -> bool:
        logger.info("Transfer event for reference %s: status=%s", data.get("reference"), data.get("status"))
        return False

    def _apply(self, event, reference, order_id, amount, data, mutate) -> str:
        # Status updates and the dedup row commit together or not at all
        try:
            with transaction.atomic():
                if reference and WebhookEvent.objects.filter(event=event, reference=reference).exists():
                    logger.info("Duplicate %s for reference %s ignored", event, reference)
                    return DUPLICATE
                try:
                    mutate()
                except IntegrityError as e:
                    # Only the dedup insert below may signal a duplicate
                    raise OrderServiceError(f"Order {order_id} rejected update: {e}") from e
                if reference:
                    WebhookEvent.objects.create(
                        event=event, reference=reference, order_id=order_id,
                        amount=max(int(amount or 0), 0), payload=data,
                    )
        except IntegrityError:
            logger.info("Concurrent duplicate %s for reference %s ignored", event, reference)
            return DUPLICATE
        except (OrderServiceError, DatabaseError):
            logger.exception("Failed to apply %s to order %s", event, order_id)
            return NOT_APPLIED
        return APPLIED

    @staticmethod
    def _contact(metadata: dict):
        phone = metadata.get("customerPhone") or metadata.get("phoneNumber")
        return phone, metadata.get("customerName")

    @staticmethod
    def _notify(send, *args) -> None:
        try:
            send(*args)
        except Exception:
            # Never let messaging affect the gateway acknowledgement
            logger.exception("WhatsApp notification failed")


@csrf_exempt
@require_POST
def paystack_webhook(request):
    handler = PaystackWebhookHandler(getattr(settings, "PAYSTACK_SECRET_KEY", ""))
    status, payload = handler.handle(request.body, request.headers.get("x-paystack-signature"))
    return JsonResponse(payload, status=status)
