# prep_core/common/middleware.py
from __future__ import annotations

from django.utils.deprecation import MiddlewareMixin

from prep_core.common.api.exceptions import ensure_request_id


class RequestIdMiddleware(MiddlewareMixin):
    """
    Attaches request.request_id (reusing an incoming X-Request-ID if present)
    and echoes it back so log lines and error envelopes can be correlated.
    """

    HEADER = "HTTP_X_REQUEST_ID"

    def process_request(self, request):
        incoming = request.META.get(self.HEADER)
        if incoming:
            request.request_id = incoming[:64]
        ensure_request_id(request)
        return None

    def process_response(self, request, response):
        rid = getattr(request, "request_id", None)
        if rid:
            response["X-Request-ID"] = rid
        return response
