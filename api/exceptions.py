"""
Custom Exception Handler for API
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

from apps.core.exceptions import StorefrontException

logger = logging.getLogger(__name__)


def _envelope(message, code, details, status_code):
    return {
        "error": True,
        "message": message,
        "code": code,
        "details": details,
        "status_code": status_code
    }


def custom_exception_handler(exc, context):
    """
    Custom exception handler that provides consistent error responses.
    """
    if isinstance(exc, StorefrontException):
        details = {"field": exc.field} if getattr(exc, "field", None) else {}
        return Response(
            _envelope(exc.message, exc.code, details, exc.status_code),
            status=exc.status_code
        )

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        # Customize the response format
        data = response.data
        if isinstance(data, dict) and set(data) == {"detail"}:
            message = str(data["detail"])
            details = {}
        else:
            message = "Invalid request"
            details = data if isinstance(data, dict) else {"detail": data}
        code = getattr(exc, "default_code", "error")
        response.data = _envelope(message, str(code).upper(), details, response.status_code)
    else:
        # Handle unexpected exceptions
        logger.exception(f"Unhandled exception: {exc}")
        response = Response(
            _envelope("An unexpected error occurred", "INTERNAL_ERROR", {}, 500),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response
