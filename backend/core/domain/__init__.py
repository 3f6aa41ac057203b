"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF exception handler translating those exceptions.
access             Role guards and the unit scope of the requesting user.

Usage from any app::

    from core.domain.exceptions import DomainError, Conflict
    from core.domain.access import require_role, get_report_scope
"""
