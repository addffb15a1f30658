"""Domain error taxonomy and the REST framework exception handler.

Every failure reaching the API boundary is rendered as
``{"message": ..., "details": {...}}`` where ``message`` is the last line of
the error text, capitalised.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SemanticError(DomainError):
    """Placement, item/group compatibility, validation-rule or dependency violation."""

    code = "semantic_error"


class DanglingReferenceError(DomainError):
    """A reference that cannot be resolved: unknown ids, temp ids or upload slots."""

    code = "reference_error"


class AuthorizationError(DomainError, PermissionDenied):
    status_code = status.HTTP_403_FORBIDDEN
    code = "authorization_error"

    def __init__(self, message: str = "This user is not authorized to perform this action.", details=None):
        super().__init__(message, details)


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


def format_message(message) -> str:
    lines = [line.strip() for line in str(message).splitlines() if line.strip()]
    if not lines:
        return "An error occurred."
    last = lines[-1]
    return last[0].upper() + last[1:]


def _first_detail(detail):
    if isinstance(detail, dict):
        for key, value in detail.items():
            nested = _first_detail(value)
            if nested is not None:
                return nested if key == "non_field_errors" else f"{key}: {nested}"
        return None
    if isinstance(detail, (list, tuple)):
        for value in detail:
            nested = _first_detail(value)
            if nested is not None:
                return nested
        return None
    return str(detail)


def error_body(message, details) -> dict:
    return {"message": format_message(message), "details": details}


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        if isinstance(exc, AuthorizationError):
            logger.warning("Rejected %s: %s", context.get("view").__class__.__name__, exc.message)
        details = {"code": exc.code, **exc.details}
        return Response(error_body(exc.message, details), status=exc.status_code)
    if isinstance(exc, ProtectedError):
        return Response(
            error_body("This entity is still referenced by other records.", {"code": ConflictError.code}),
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, ObjectDoesNotExist) and not isinstance(exc, Http404):
        exc = Http404(str(exc))

    response = exception_handler(exc, context)
    if response is None:
        logger.exception("Unhandled error in %s", context.get("view").__class__.__name__, exc_info=exc)
        return None
    if isinstance(exc, DRFValidationError):
        message = _first_detail(response.data) or "Invalid request payload."
        response.data = error_body(message, {"code": "validation_error", "fields": response.data})
    else:
        detail = response.data.get("detail", "") if isinstance(response.data, dict) else response.data
        response.data = error_body(detail, {"code": getattr(exc, "default_code", "error")})
    return response
