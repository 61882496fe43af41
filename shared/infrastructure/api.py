"""
DRF integration for the domain error taxonomy.

Registered as ``REST_FRAMEWORK['EXCEPTION_HANDLER']``. Domain errors are
translated to HTTP responses with a stable ``code`` field; everything else
falls through to DRF's default handler.
"""

from __future__ import annotations

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import (
    AuthorizationError,
    BusinessRuleViolation,
    DomainError,
    TransientError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

RETRY_AFTER_SECONDS = "1"


def status_for(exc: DomainError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthorizationError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, BusinessRuleViolation):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, TransientError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        code = status_for(exc)
        view = context.get("view")
        logger.info(
            "api.domain_error",
            error=exc.code,
            status=code,
            view=view.__class__.__name__ if view else None,
        )
        response = Response(exc.to_dict(), status=code)
        if exc.retryable:
            response["Retry-After"] = RETRY_AFTER_SECONDS
        return response

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else {"non_field_errors": exc.messages}
        return Response(
            {"code": ValidationError.code, "detail": detail},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return drf_exception_handler(exc, context)
