"""
Error taxonomy and the DRF exception handler that maps it onto responses.

Not-found -> 404, validation -> 422, conflict -> 409. Anything unexpected is
rolled back, logged with its traceback and answered with a generic 500 that
only carries the exception text while DEBUG is on.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler, set_rollback

from apps.base.response import ApiResponse

logger = logging.getLogger(__name__)


class ConflictError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class ConstraintViolationError(Exception):
    """A write was rejected by a database uniqueness or reference constraint."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_errors(self):
        return {self.field or "non_field_errors": [self.message]}


def custom_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(detail=as_serializer_error(exc))

    if isinstance(exc, ConstraintViolationError):
        set_rollback()
        return ApiResponse.error(
            message="Validation failed",
            errors=exc.as_errors(),
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    response = exception_handler(exc, context)

    if response is None:
        set_rollback()
        view = context.get("view")
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}")
        return ApiResponse.error(
            message="Something went wrong while processing the request",
            errors=str(exc) if settings.DEBUG else None,
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        return ApiResponse.error(
            message="Validation failed",
            errors=response.data,
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    if isinstance(exc, Http404):
        return ApiResponse.error(message="Not found", status=status.HTTP_404_NOT_FOUND)

    detail = getattr(exc, "detail", None)
    error_response = ApiResponse.error(
        message=str(detail) if detail is not None else "Request failed",
        errors=None,
        status=response.status_code,
    )
    # Retry-After, WWW-Authenticate, ...
    for header, value in response.items():
        error_response[header] = value
    return error_response
