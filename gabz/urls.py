from django.contrib import admin
from django.urls import include, path

from payments import webhook

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/payment/", include("payments.urls")),
    path("api/webhooks/paystack", webhook.paystack_webhook, name="paystack_webhook"),
]

handler404 = "gabz.views.error_404_view"
handler500 = "gabz.views.error_500_view"
