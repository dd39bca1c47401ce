import logging

logger = logging.getLogger(__name__)

OVERRIDABLE_METHODS = {"PUT", "PATCH", "DELETE"}


class MethodOverrideMiddleware:
    """Let HTML forms reach PUT/PATCH/DELETE routes.

    A POST with ``?_method=PUT`` (or an ``X-HTTP-Method-Override`` header) is
    dispatched as that method. Only the query string is inspected so the
    request body stays unread for the parsers downstream.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.method == "POST":
            override = request.GET.get("_method") or request.headers.get("X-HTTP-Method-Override")
            if override and override.upper() in OVERRIDABLE_METHODS:
                logger.debug("method override %s -> %s on %s", request.method, override.upper(), request.path)
                request.method = override.upper()
        return self.get_response(request)
