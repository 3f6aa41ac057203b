"""
Core app serializers.

Response-only serializers for ``GET /api/core/constants/``.
"""

from __future__ import annotations

from rest_framework import serializers


class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "Laporan Polisi", "label": "Laporan Polisi"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class StatusDetailPairSerializer(serializers.Serializer):
    status = serializers.CharField()
    details = serializers.ListField(child=serializers.CharField())


class DistrictSerializer(serializers.Serializer):
    name = serializers.CharField()
    sub_districts = serializers.ListField(child=serializers.CharField())


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "report_types": [{"value": "Laporan Polisi", "label": "Laporan Polisi"}, ...],
            "police_models": [...],
            "spkt_offices": [...],
            "location_types": [...],
            "report_statuses": [...],
            "status_details": [...],
            "user_roles": [...],
            "allowed_status_details": [
                {"status": "Proses", "details": ["Lidik", "Sidik"]},
                ...
            ],
            "districts": [
                {"name": "Sorong", "sub_districts": ["Klademak", ...]},
                ...
            ]
        }
    """

    report_types = ChoiceItemSerializer(many=True)
    police_models = ChoiceItemSerializer(many=True)
    spkt_offices = ChoiceItemSerializer(many=True)
    location_types = ChoiceItemSerializer(many=True)
    report_statuses = ChoiceItemSerializer(many=True)
    status_details = ChoiceItemSerializer(many=True)
    user_roles = ChoiceItemSerializer(many=True)
    allowed_status_details = StatusDetailPairSerializer(many=True)
    districts = DistrictSerializer(many=True)
