from django.db import models


class WebhookEvent(models.Model):
    """One row per applied gateway event; redeliveries hit the unique constraint."""
    event = models.CharField(max_length=64)
    reference = models.CharField(max_length=128)
    order_id = models.CharField(max_length=64, db_index=True)
    amount = models.PositiveIntegerField(default=0)
    payload = models.JSONField(default=dict, blank=True)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "reference"], name="uniq_webhook_event_reference"),
        ]

    def __str__(self):
        return f"{self.event} {self.reference}"
