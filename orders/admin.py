from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "order_id", "customer_name", "status", "payment_status", "final_amount", "created_at")
    search_fields = ("order_number", "order_id", "customer_id", "customer_email", "customer_phone", "payment_reference")
    list_filter = ("status", "payment_status", "payment_method", "delivery_type", "created_at")
    readonly_fields = ("created_at", "updated_at", "order_history", "amount_paid", "payment_reference")
    ordering = ("-created_at",)
