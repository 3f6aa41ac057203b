"""
Core app service layer.

``SystemConstantsService`` gathers the choice enumerations, the
district map and the allowed status-detail pairs so the frontend can
build its forms and filters without hardcoding values.
"""

from __future__ import annotations

from typing import Any

from core.constants import DISTRICT_SUBDISTRICT_MAP


class SystemConstantsService:
    """
    Stateless: the payload does not depend on the requesting user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import UserRole
        from reports.models import (
            ALLOWED_STATUS_DETAILS,
            SPKT,
            LocationType,
            PoliceModel,
            ReportStatus,
            ReportType,
            StatusDetail,
        )

        to_list = SystemConstantsService._choices_to_list

        return {
            "report_types": to_list(ReportType),
            "police_models": to_list(PoliceModel),
            "spkt_offices": to_list(SPKT),
            "location_types": to_list(LocationType),
            "report_statuses": to_list(ReportStatus),
            "status_details": to_list(StatusDetail),
            "user_roles": to_list(UserRole),
            "allowed_status_details": [
                {"status": str(status), "details": [str(d) for d in details]}
                for status, details in ALLOWED_STATUS_DETAILS.items()
            ],
            "districts": [
                {"name": district, "sub_districts": list(subs)}
                for district, subs in DISTRICT_SUBDISTRICT_MAP.items()
            ],
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]
