"""
core.domain.access — Role guards and unit scoping shared by all apps.

Two roles exist: **Admin** (sees and manages everything) and **Operator**
(bound to a home unit; sees the reports assigned to that unit).

╔══════════════════════════════════════════════════════════════════╗
║  Per-app scoping rules do NOT live here.                        ║
║  Each app's ``services.py`` decides what a scope means for its  ║
║  own data.  This module provides:                               ║
║    1) ``get_user_role_name`` — normalised role name.            ║
║    2) ``require_role``       — guard raising PermissionDenied.  ║
║    3) ``get_report_scope``   — the viewer's ``ReportScope``.    ║
║    4) ``apply_role_filter``  — role-keyed queryset dispatch.    ║
╚══════════════════════════════════════════════════════════════════╝

Usage in an app's service layer::

    from core.domain.access import apply_role_filter

    PERSONNEL_SCOPE = {
        "admin":    lambda qs, u: qs,
        "operator": lambda qs, u: qs.filter(unit_id=u.unit_id),
    }

    qs = apply_role_filter(Personnel.objects.all(), user,
                           scope_config=PERSONNEL_SCOPE, default="none")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User

ADMIN = "admin"
OPERATOR = "operator"

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]
ScopeConfig = dict[str, ScopeFilter]


@dataclass(frozen=True)
class ReportScope:
    """
    What part of the report collection a viewer may see.

    ``unit_id`` is ``None`` for an unrestricted (admin) viewer.  An
    operator without a home unit gets ``restricted=True`` and
    ``unit_id=None``, which matches nothing.
    """

    restricted: bool
    unit_id: int | None = None

    @classmethod
    def everything(cls) -> ReportScope:
        return cls(restricted=False)

    @classmethod
    def for_unit(cls, unit_id: int | None) -> ReportScope:
        return cls(restricted=True, unit_id=unit_id)

    @property
    def is_admin(self) -> bool:
        return not self.restricted

    def cache_key(self) -> str:
        if not self.restricted:
            return "all"
        return f"unit-{self.unit_id}"


def get_user_role_name(user: User) -> str | None:
    """
    Return the lowercased role name for a user, or ``None`` if unassigned.

    Superusers are always treated as admins.
    """
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return ADMIN
    role = getattr(user, "role", None)
    if not role:
        return None
    return str(role).lower()


def is_admin(user: User) -> bool:
    return get_user_role_name(user) == ADMIN


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user's role is not
    among ``allowed_roles``.

    Example::

        require_role(user, ADMIN, message="Hanya admin yang dapat menghapus unit.")
    """
    role_name = get_user_role_name(user)
    if role_name not in allowed_roles:
        raise PermissionDenied(
            message
            or f"Role '{role_name}' is not permitted for this operation. "
            f"Required: {', '.join(allowed_roles)}."
        )


def get_report_scope(user: User) -> ReportScope:
    """Return the ``ReportScope`` of an authenticated user."""
    role_name = get_user_role_name(user)
    if role_name == ADMIN:
        return ReportScope.everything()
    if role_name == OPERATOR:
        return ReportScope.for_unit(getattr(user, "unit_id", None))
    raise PermissionDenied("Akun ini tidak memiliki peran yang valid.")


def apply_role_filter(
    queryset: QuerySet,
    user: User,
    *,
    scope_config: ScopeConfig,
    default: str = "none",
) -> QuerySet:
    """
    Apply the filter registered for the user's role.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_config: ``{role_name: filter_fn}`` mapping.
        default:      ``"none"`` → empty queryset when the role has no entry,
                      ``"all"`` → unfiltered.
    """
    role_name = get_user_role_name(user)

    if role_name and role_name in scope_config:
        return scope_config[role_name](queryset, user)

    if default == "none":
        return queryset.none()
    return queryset
