"""
core.domain.exception_handler — Turns service-layer errors into responses.

Services in ``accounts``, ``organization``, ``reports`` and ``analytics``
raise ``core.domain.exceptions``; this handler renders them as
``{"detail": "<pesan>"}`` with the status code of the exception class.
DRF's own exceptions (validation, authentication, throttling) keep their
default rendering.

Registered in ``reskrim/settings.py`` as
``REST_FRAMEWORK["EXCEPTION_HANDLER"]``.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ServiceUnavailable,
)

logger = logging.getLogger(__name__)

# Checked in insertion order; DomainError must stay last.
_STATUS_MAP: dict[type, int] = {
    PermissionDenied:   403,
    NotFound:           404,
    InvalidTransition:  409,
    Conflict:           409,
    ServiceUnavailable: 503,
    DomainError:        400,
}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    Render DRF exceptions as usual and domain exceptions as ``detail``
    bodies.  Anything else returns ``None`` and surfaces as a 500.

    A 503 (report snapshot could not be built) is logged at ERROR with the
    failed query name when the exception carries one; rule violations are
    WARNING.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    for exc_class, status_code in _STATUS_MAP.items():
        if not isinstance(exc, exc_class):
            continue
        view = context.get("view")
        view_name = type(view).__name__ if view is not None else "unknown"
        if status_code >= 500:
            logger.error(
                "%s in %s: %s (source=%s)",
                type(exc).__name__,
                view_name,
                exc,
                getattr(exc, "source", None),
            )
        else:
            logger.warning("%s in %s: %s", type(exc).__name__, view_name, exc)
        return Response({"detail": str(exc)}, status=status_code)

    return None
