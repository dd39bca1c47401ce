"""Domain errors raised by the service layer.

Views never catch these; ``apps.core.handlers.shop_exception_handler`` turns
them into JSON responses with the matching status code.
"""


class ShopError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ShopError):
    status_code = 404
    default_message = "Not found"


class ValidationError(ShopError):
    status_code = 400
    default_message = "Invalid data"


class Conflict(ShopError):
    status_code = 409
    default_message = "Conflict"


class InvalidTransition(Conflict):
    default_message = "Invalid status transition"


class PermissionDenied(ShopError):
    status_code = 403
    default_message = "Permission denied"


class ExternalServiceError(ShopError):
    status_code = 502
    default_message = "External service unavailable"
