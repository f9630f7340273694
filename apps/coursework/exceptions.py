"""
API error rendering.

Every failure is classified once here:
- forbidden (role, ownership or missing credentials) -> fixed 403 body
- not found (missing resource, broken chain, zero rows affected) -> 404
- validation -> 400 with the validation message
- anything else -> opaque 500, details only in the log
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

INVALID_ROLE_MESSAGE = {
    'error': 'The request was not made by an authenticated User with a role permitted to perform this action'
}
NOT_FOUND_MESSAGE = {'error': 'Requested resource does not exist'}
SERVER_ERROR_MESSAGE = {'error': 'Internal server error'}
INVALID_INPUT_MESSAGE = {'error': 'Request conflicts with existing data'}


def validation_message(detail):
    """Flatten DRF/Django error details into one 'field: message' string."""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            message = validation_message(value)
            parts.append(message if field == 'non_field_errors' else f"{field}: {message}")
        return '; '.join(parts)
    if isinstance(detail, (list, tuple)):
        return '; '.join(validation_message(item) for item in detail)
    return str(detail)


def coursework_exception_handler(exc, context):
    if isinstance(exc, (PermissionDenied, NotAuthenticated, AuthenticationFailed)):
        return Response(INVALID_ROLE_MESSAGE, status=status.HTTP_403_FORBIDDEN)

    if isinstance(exc, (Http404, NotFound)):
        return Response(NOT_FOUND_MESSAGE, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, ValidationError):
        return Response(
            {'error': validation_message(exc.detail)},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return Response(
            {'error': validation_message(detail)},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error rejected as invalid input: %s", exc)
        return Response(INVALID_INPUT_MESSAGE, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    logger.error(
        "Unhandled error in %s",
        type(view).__name__ if view else 'unknown view',
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return Response(SERVER_ERROR_MESSAGE, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
