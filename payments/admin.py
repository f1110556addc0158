from django.contrib import admin

from .models import WebhookEvent


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ("event", "reference", "order_id", "amount", "processed_at")
    search_fields = ("reference", "order_id")
    list_filter = ("event", "processed_at")
    readonly_fields = ("processed_at", "payload")
    ordering = ("-processed_at",)
