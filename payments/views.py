import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from orders.services import OrderServiceError, record_payment_reference
from .integrations.paystack import PaystackError, initialize_transaction, verify_transaction
from .utils import generate_reference

logger = logging.getLogger(__name__)


def _json_body(request):
    try: return json.loads(request.body.decode("utf-8"))
    except Exception: return None


@csrf_exempt
@require_POST
def initialize_payment_view(request):
    body = _json_body(request)
    payment_data = (body or {}).get("paymentData") if isinstance(body, dict) else None
    if not isinstance(payment_data, dict):
        return JsonResponse({"error": "Missing required payment data"}, status=400)

    metadata = payment_data.get("metadata") or {}
    order_id = metadata.get("orderId") if isinstance(metadata, dict) else None
    if not payment_data.get("email") or not payment_data.get("amount") or not order_id:
        return JsonResponse({"error": "Missing required payment data"}, status=400)

    reference = payment_data.get("reference") or generate_reference(order_id)
    try:
        record_payment_reference(order_id, reference)
        result = initialize_transaction(
            email=payment_data["email"],
            amount=payment_data["amount"],
            currency=payment_data.get("currency") or "NGN",
            reference=reference,
            callback_url=payment_data.get("callback_url"),
            metadata=metadata,
        )
    except (PaystackError, OrderServiceError) as e:
        logger.warning("Payment initialization failed for order %s: %s", order_id, e)
        return JsonResponse({"error": str(e)}, status=400)
    except Exception:
        logger.exception("Payment initialization crashed for order %s", order_id)
        return JsonResponse({"error": "Internal server error"}, status=500)

    return JsonResponse({
        "success": True,
        "data": {
            "authorizationUrl": result["authorization_url"],
            "reference": result["reference"] or reference,
            "accessCode": result["access_code"],
        },
    })


@csrf_exempt
@require_POST
def verify_payment_view(request):
    body = _json_body(request)
    reference = body.get("reference") if isinstance(body, dict) else None
    if not reference:
        return JsonResponse({"error": "Payment reference is required"}, status=400)

    try:
        data = verify_transaction(reference)
    except PaystackError as e:
        return JsonResponse({"error": str(e)}, status=400)
    except Exception:
        logger.exception("Payment verification crashed for reference %s", reference)
        return JsonResponse({"error": "Internal server error"}, status=500)

    return JsonResponse({"success": True, "data": data})
