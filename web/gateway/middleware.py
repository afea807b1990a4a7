"""Request gateway middleware for the storefront API.

``RequestIdMiddleware`` gives every request a correlation id: the incoming
``X-Request-ID`` header when the caller (for instance the automation system)
sends one, a fresh UUIDv4 otherwise. The id is echoed on the response and
exposed through ``REQUEST_ID_CTX`` so log records and outbound calls (payment
processors, automation webhook) carry it without explicit plumbing.

``ApiSizeLimitMiddleware`` rejects oversized bodies on ``/api/`` routes before
they reach a view.
"""

import contextvars
import os
import uuid

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
MAX_API_BYTES = int(os.getenv("API_MAX_BYTES", str(256 * 1024)))


class RequestIdMiddleware(MiddlewareMixin):
    """Assign, propagate and echo the request correlation id."""

    HEADER = "HTTP_X_REQUEST_ID"       # incoming header as found in request.META
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        request._request_id_token = REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        response[self.RESPONSE_HEADER] = getattr(request, "request_id", REQUEST_ID_CTX.get())
        token = getattr(request, "_request_id_token", None)
        if token is not None:
            REQUEST_ID_CTX.reset(token)
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    """Answer 413 for API requests whose declared body exceeds the limit."""

    def process_request(self, request):
        if not request.path.startswith("/api/"):
            return None
        length = request.META.get("CONTENT_LENGTH") or ""
        if length.isdigit() and int(length) > MAX_API_BYTES:
            return JsonResponse({"detail": "PAYLOAD_TOO_LARGE"}, status=413)
        return None
