import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import ShopError

logger = logging.getLogger(__name__)


def shop_exception_handler(exc, context):
    if isinstance(exc, ShopError):
        logger.info("%s: %s", type(exc).__name__, exc.message)
        return Response({"success": False, "message": exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None
    # keep DRF's field errors but in the same envelope
    detail = response.data
    message = detail.get("detail") if isinstance(detail, dict) and "detail" in detail else "Invalid data"
    body = {"success": False, "message": str(message)}
    if isinstance(detail, (dict, list)) and message == "Invalid data":
        body["errors"] = detail
    response.data = body
    return response
