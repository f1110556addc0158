import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)


def error_404_view(request, exception):
    # API clients only; keep the body machine-readable
    return JsonResponse({"error": "Not found", "path": request.path}, status=404)


def error_500_view(request):
    logger.error("Unhandled server error for %s %s", request.method, request.path)
    return JsonResponse({"error": "Internal server error"}, status=500)
