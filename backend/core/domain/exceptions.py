"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  ``core.domain.exception_handler`` maps them to HTTP
responses with a ``{"detail": ...}`` body.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception    │ Meaning                      │ Code │
├─────────────────────┼──────────────────────────────┼──────┤
│ DomainError         │ business rule violated       │ 400  │
│ PermissionDenied    │ role may not do this         │ 403  │
│ NotFound            │ missing / outside the scope  │ 404  │
│ Conflict            │ still referenced, duplicate  │ 409  │
│ InvalidTransition   │ status change not allowed    │ 409  │
│ ServiceUnavailable  │ store could not be read      │ 503  │
│ AggregationError    │ report snapshot failed       │ 503  │
└─────────────────────┴──────────────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import Conflict

    if unit.personnel.exists():
        raise Conflict("Gagal menghapus: Unit ini masih memiliki personil terdaftar.")
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Caught at the view boundary and converted to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The authenticated user's role does not allow this operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is outside the requesting
    operator's unit scope).

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: deleting a unit that is still referenced, creating a
    second login account for the same personnel.  Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A report status change that is not allowed from the current status.

    Example::

        raise InvalidTransition(
            current="Dihapus",
            target="Proses",
            reason="Laporan sudah dihapus.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid status transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class ServiceUnavailable(DomainError):
    """
    The backing store could not be read.

    Maps to HTTP 503.  The client is expected to retry by logging in again.
    """

    def __init__(self, message: str = "Gagal memuat data.") -> None:
        super().__init__(message)


class AggregationError(ServiceUnavailable):
    """
    One of the primary queries (units, personnel, reports) of a report
    snapshot failed, so the whole snapshot is aborted.

    The client sees the plain message; ``source`` names the failed query
    for logging.
    """

    def __init__(self, message: str = "Gagal memuat data.", *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source
