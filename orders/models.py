from django.db import models

from .utils import gen_order_id, gen_order_number


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PICKED_UP = "picked_up", "Picked up"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in_progress", "In progress"
    READY = "ready", "Ready"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    ONLINE = "online", "Online"
    POS = "pos", "POS"
    TRANSFER = "transfer", "Transfer"
    CASH = "cash", "Cash"


class DeliveryType(models.TextChoices):
    PICKUP = "pickup", "Pickup"
    DELIVERY = "delivery", "Delivery"


class Order(models.Model):
    # Amounts are stored in kobo
    order_id = models.CharField(max_length=64, unique=True, default=gen_order_id)
    order_number = models.CharField(max_length=32, unique=True, blank=True)

    customer_id = models.CharField(max_length=64, db_index=True)
    customer_name = models.CharField(max_length=128, blank=True, default="")
    customer_phone = models.CharField(max_length=20, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")

    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, blank=True, default="")
    payment_reference = models.CharField(max_length=128, blank=True, default="", db_index=True)

    total_amount = models.PositiveIntegerField(default=0)
    discount_amount = models.PositiveIntegerField(default=0)
    final_amount = models.PositiveIntegerField(default=0)
    amount_paid = models.PositiveIntegerField(blank=True, null=True)

    delivery_type = models.CharField(max_length=16, choices=DeliveryType.choices, default=DeliveryType.PICKUP)
    requested_date_time = models.CharField(max_length=64, blank=True, default="")
    customer_notes = models.TextField(blank=True, default="")

    order_history = models.JSONField(default=list, blank=True)
    actual_pickup_time = models.DateTimeField(blank=True, null=True)
    actual_delivery_time = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = gen_order_number()
            while Order.objects.filter(order_number=self.order_number).exists():
                self.order_number = gen_order_number()
        super().save(*args, **kwargs)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def __str__(self):
        return f"{self.order_number} ({self.status}/{self.payment_status})"
