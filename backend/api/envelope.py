"""JSON envelopes and the error taxonomy shared by every endpoint."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from django.utils.cache import patch_cache_control
from rest_framework import exceptions, status
from rest_framework.response import Response

from core.providers.base import NotFound, RateLimited


logger = logging.getLogger(__name__)


class ApiErrorCode(str, Enum):
    VALIDATION = "VALIDATION"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    NOT_FOUND = "NOT_FOUND"


STATUS_BY_CODE = {
    ApiErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ApiErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ApiErrorCode.PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ApiErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
UNEXPECTED_MESSAGE = "An unexpected error occurred"


def success(data: Any, cache_control: Optional[Mapping[str, Any]] = None) -> Response:
    response = Response({"data": data}, status=status.HTTP_200_OK)
    if cache_control:
        patch_cache_control(response, **cache_control)
    return response


def error(code: ApiErrorCode, message: str) -> Response:
    return Response(
        {"error": {"code": code.value, "message": message}},
        status=STATUS_BY_CODE[code],
    )


def validation_error(errors: Any, default: str = "Invalid parameters") -> Response:
    return error(ApiErrorCode.VALIDATION, first_error_message(errors) or default)


def provider_error(exc: Exception, message: str, not_found_message: Optional[str] = None) -> Response:
    """Translate an adapter signal into its envelope."""
    if isinstance(exc, RateLimited):
        return error(ApiErrorCode.RATE_LIMITED, RATE_LIMITED_MESSAGE)
    if isinstance(exc, NotFound) and not_found_message:
        return error(ApiErrorCode.NOT_FOUND, not_found_message)
    return error(ApiErrorCode.PROVIDER_ERROR, message)


def first_error_message(errors: Any) -> Optional[str]:
    if isinstance(errors, Mapping):
        for value in errors.values():
            message = first_error_message(value)
            if message:
                return message
        return None
    if isinstance(errors, (list, tuple)):
        for value in errors:
            message = first_error_message(value)
            if message:
                return message
        return None
    return str(errors) if errors else None


def exception_handler(exc: Exception, context: Mapping[str, Any]) -> Response:
    """DRF exception handler keeping every failure inside the error envelope."""
    if isinstance(exc, (exceptions.ParseError, exceptions.UnsupportedMediaType, exceptions.ValidationError)):
        return validation_error(exc.detail, "Invalid request")
    if isinstance(exc, exceptions.APIException):
        # e.g. 405: client mistakes keep their own status code
        logger.warning("API exception in %s: %s", context.get("view").__class__.__name__, exc)
        code = ApiErrorCode.VALIDATION if exc.status_code < 500 else ApiErrorCode.PROVIDER_ERROR
        return Response(
            {"error": {"code": code.value, "message": str(exc.detail)}},
            status=exc.status_code,
        )
    logger.error("Unhandled exception in %s", context.get("view").__class__.__name__, exc_info=exc)
    return error(ApiErrorCode.PROVIDER_ERROR, UNEXPECTED_MESSAGE)


__all__ = [
    "ApiErrorCode",
    "STATUS_BY_CODE",
    "error",
    "exception_handler",
    "first_error_message",
    "provider_error",
    "success",
    "validation_error",
]
