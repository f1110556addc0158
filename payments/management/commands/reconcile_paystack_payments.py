import time
from django.core.management.base import BaseCommand
from django.utils import timezone
from orders.models import Order, OrderStatus, PaymentStatus
from orders.services import OrderServiceError, update_order_status
from payments.integrations.paystack import verify_transaction, PaystackError
from payments.webhook import PaystackWebhookHandler, SYSTEM_ACTOR, CONFIRMED_NOTE
from django.conf import settings

FAILED_STATUSES = {"failed", "abandoned", "reversed"}
ABANDONED = "abandoned"


class Command(BaseCommand):
    help = "Poll Paystack for orders still awaiting payment and repair paid-but-unconfirmed orders"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=50)
        parser.add_argument("--sleep", type=float, default=0.5)
        parser.add_argument("--older-than-minutes", type=int, default=5)
        parser.add_argument("--abandon-after-minutes", type=int, default=60)

    def handle(self, *args, **opts):
        handler = PaystackWebhookHandler(getattr(settings, "PAYSTACK_SECRET_KEY", ""))
        cutoff = timezone.now() - timezone.timedelta(minutes=opts["older_than_minutes"])
        abandon_cutoff = timezone.now() - timezone.timedelta(minutes=opts["abandon_after_minutes"])

        # Paid but never confirmed: the second update of a success event did not land
        stuck = Order.objects.filter(payment_status=PaymentStatus.PAID, status=OrderStatus.PENDING).filter(updated_at__lt=cutoff)
        for o in stuck[:opts["max"]]:
            try:
                update_order_status(o.order_id, OrderStatus.CONFIRMED, SYSTEM_ACTOR, CONFIRMED_NOTE)
                self.stdout.write(self.style.SUCCESS(f"Confirmed paid order {o.order_number}"))
            except OrderServiceError as e:
                self.stdout.write(self.style.WARNING(f"{o.order_number}: {e}"))

        qs = (Order.objects.filter(payment_status=PaymentStatus.PENDING)
              .exclude(payment_reference="")
              .filter(updated_at__lt=cutoff)
              .order_by("updated_at")[:opts["max"]])

        checked = updated = 0
        for o in qs:
            checked += 1
            try:
                data = verify_transaction(o.payment_reference)
            except PaystackError as e:
                self.stdout.write(self.style.WARNING(f"{o.order_number}: {e}"))
                continue

            status = str(data.get("status") or "").lower()
            data.setdefault("reference", o.payment_reference)
            meta = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
            data["metadata"] = {**meta, "orderId": o.order_id}

            if status == "success":
                changed = handler.handle_charge_success(data)
            elif status == ABANDONED and o.updated_at >= abandon_cutoff:
                # Checkout may still be completed; keep polling until the longer cutoff
                changed = False
            elif status in FAILED_STATUSES:
                changed = handler.handle_charge_failed(data)
            else:
                changed = False
            if changed:
                updated += 1
                self.stdout.write(self.style.SUCCESS(f"Updated {o.order_number} -> {status}"))
            else:
                self.stdout.write(f"{o.order_number}: status={status or 'UNKNOWN'}")
            time.sleep(opts["sleep"])

        self.stdout.write(self.style.SUCCESS(f"Checked {checked}, updated {updated} orders."))
