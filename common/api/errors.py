"""Map engine exceptions onto HTTP responses."""

from rest_framework import status
from rest_framework.response import Response

from common.exceptions import (
    ConflictError,
    DocumentNotFound,
    PersistenceError,
    StaleWriteError,
    ValidationError,
)


def engine_error_response(exc):
    """Return the Response for an engine exception, or None if it is not one."""
    if isinstance(exc, ValidationError):
        return Response(exc.as_dict(), status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ConflictError):
        return Response(
            {"detail": exc.message, "conflicting_product_ids": exc.product_ids},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, DocumentNotFound):
        return Response({"detail": exc.message}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, StaleWriteError):
        return Response({"detail": exc.message}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, PersistenceError):
        return Response({"detail": exc.message}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return None


class EngineErrorMixin:
    """Turn engine exceptions raised inside a DRF view into proper responses."""

    def handle_exception(self, exc):
        response = engine_error_response(exc)
        if response is not None:
            return response
        return super().handle_exception(exc)
