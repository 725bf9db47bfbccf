# prep_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Request failed."

# Most specific first; the first isinstance match wins.
ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ValidationError, "validation_error"),
    (NotAuthenticated, "not_authenticated"),
    (AuthenticationFailed, "authentication_failed"),
    (PermissionDenied, "permission_denied"),
    (NotFound, "not_found"),
    (Http404, "not_found"),
)


def ensure_request_id(request) -> str:
    """
    Returns request.request_id, minting one if the request has none yet.
    Works for Django requests and DRF Request wrappers alike.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    {"error": {"code", "message", "details", "request_id"}}

    The only error shape the preparedness API returns.
    """
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


def _as_drf(exc: DjangoValidationError) -> ValidationError:
    if hasattr(exc, "error_dict"):
        return ValidationError(exc.message_dict)
    messages = exc.messages
    return ValidationError({"detail": messages[0] if len(messages) == 1 else messages})


def _error_code(exc: Exception) -> str:
    for exc_type, code in ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    if isinstance(exc, APIException):
        return exc.default_code or "api_error"
    return "error"


def _message_and_details(data: Any) -> tuple[str, Any]:
    """
    A "detail" key becomes the message and the remaining keys the details.
    Field errors have no "detail": generic message, all of it as details.
    """
    if not isinstance(data, dict) or "detail" not in data:
        return GENERIC_MESSAGE, data

    detail = data["detail"]
    if isinstance(detail, list) and len(detail) == 1:
        detail = detail[0]
    rest = {k: v for k, v in data.items() if k != "detail"}
    return str(detail), rest or None


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    # Services raise Django's ValidationError.
    if isinstance(exc, DjangoValidationError):
        exc = _as_drf(exc)

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("unhandled API error (request_id=%s)", ensure_request_id(request), exc_info=exc)
        return Response(
            build_error_envelope(request=request, code="server_error", message="Unexpected server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = _message_and_details(response.data)
    return Response(
        build_error_envelope(request=request, code=_error_code(exc), message=message, details=details),
        status=response.status_code,
        headers=response.headers,
    )
