import logging

from django.db import transaction
from django.utils import timezone

from .models import Order, OrderStatus, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)


class OrderServiceError(Exception): pass


def get_order(order_id: str) -> Order:
    try:
        return Order.objects.get(order_id=order_id)
    except Order.DoesNotExist:
        raise OrderServiceError(f"Order not found: {order_id}")


def _locked(order_id: str) -> Order:
    try:
        return Order.objects.select_for_update().get(order_id=order_id)
    except Order.DoesNotExist:
        raise OrderServiceError(f"Order not found: {order_id}")


@transaction.atomic
def update_order_payment_status(order_id: str, payment_status: str,
                                payment_reference: str | None = None,
                                amount_paid: int | None = None) -> Order:
    """Assign the order's payment status.

    The reference is stored when given. ``amount_paid`` is only written when
    truthy so a zero-amount failure never erases an earlier payment.
    """
    if payment_status not in PaymentStatus.values:
        raise OrderServiceError(f"Unknown payment status: {payment_status}")

    order = _locked(order_id)
    fields = ["payment_status", "updated_at"]
    order.payment_status = payment_status
    if payment_reference:
        order.payment_reference = payment_reference
        fields.append("payment_reference")
    if amount_paid:
        order.amount_paid = int(amount_paid)
        fields.append("amount_paid")
    order.save(update_fields=fields)

    logger.info("Order %s payment status -> %s (ref=%s amount=%s)",
                order_id, payment_status, payment_reference, amount_paid)
    return order


@transaction.atomic
def update_order_status(order_id: str, status: str, staff_id: str, notes: str | None = None) -> Order:
    """Move the order to ``status`` and append an entry to its history.

    An order can only be confirmed once its payment status is paid.
    """
    if status not in OrderStatus.values:
        raise OrderServiceError(f"Unknown order status: {status}")

    order = _locked(order_id)
    if status == OrderStatus.CONFIRMED and order.payment_status != PaymentStatus.PAID:
        raise OrderServiceError(f"Order {order_id} cannot be confirmed before payment")

    now = timezone.now()
    history = order.order_history if isinstance(order.order_history, list) else []
    history.append({
        "status": status,
        "timestamp": now.isoformat(),
        "staff_id": staff_id,
        "notes": notes,
    })

    order.status = status
    order.order_history = history
    fields = ["status", "order_history", "updated_at"]
    if status == OrderStatus.READY:
        order.actual_pickup_time = now
        fields.append("actual_pickup_time")
    elif status == OrderStatus.DELIVERED:
        order.actual_delivery_time = now
        fields.append("actual_delivery_time")
    order.save(update_fields=fields)

    logger.info("Order %s status -> %s by %s", order_id, status, staff_id)
    return order


@transaction.atomic
def record_payment_reference(order_id: str, reference: str) -> Order:
    """Attach the checkout reference to an order awaiting online payment."""
    order = _locked(order_id)
    if order.payment_status == PaymentStatus.PAID:
        raise OrderServiceError(f"Order {order_id} is already paid")
    order.payment_reference = reference
    order.payment_method = PaymentMethod.ONLINE
    order.save(update_fields=["payment_reference", "payment_method", "updated_at"])
    return order
