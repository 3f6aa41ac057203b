"""
Reports app serializers.

Request serializers validate form input (district / sub-district pairs,
police model presence, status-detail pairs) and query parameters.
Response serializers render ``AggregatedReport`` objects from the
snapshot; they never hit the database.

Response serializers that need unit / personnel names expect the
snapshot in ``context["snapshot"]``.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from core.constants import DISTRICT_SUBDISTRICT_MAP

from .models import (
    ALLOWED_STATUS_DETAILS,
    Report,
    ReportStatus,
    ReportType,
    StatusDetail,
    is_allowed_detail,
)
from .services import ReportQueryService, VehicleQueryService


# ═══════════════════════════════════════════════════════════════════
#  Request serializers
# ═══════════════════════════════════════════════════════════════════


class StolenVehicleInputSerializer(serializers.Serializer):
    vehicle_type = serializers.CharField(max_length=100)
    frame_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    engine_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")


class ReportWriteSerializer(serializers.ModelSerializer):
    """
    Create / edit payload for a report (admin form).

    ``stolen_vehicles`` replaces the whole vehicle list when present.
    Status fields are not writable here; they change through
    ``update-status`` and soft delete only.
    """

    stolen_vehicles = StolenVehicleInputSerializer(many=True, required=False)

    class Meta:
        model = Report
        fields = [
            "report_type",
            "report_year",
            "report_number",
            "police_model",
            "spkt",
            "report_date",
            "reporter_name",
            "case_type",
            "incident_date",
            "incident_time",
            "incident_location",
            "location_type",
            "district",
            "sub_district",
            "loss_amount",
            "stolen_vehicles",
        ]

    def _current(self, attrs: dict[str, Any], name: str) -> Any:
        if name in attrs:
            return attrs[name]
        if self.instance is not None:
            return getattr(self.instance, name)
        return None

    def validate_report_number(self, value: str) -> str:
        value = value.strip()
        if not value.isdigit():
            raise serializers.ValidationError("Nomor laporan harus berupa angka.")
        return value

    def validate_case_type(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Jenis kasus wajib diisi.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        report_type = self._current(attrs, "report_type")
        police_model = self._current(attrs, "police_model")
        if report_type == ReportType.LAPORAN_POLISI and not police_model:
            raise serializers.ValidationError(
                {"police_model": "Model laporan wajib diisi untuk Laporan Polisi."}
            )

        district = self._current(attrs, "district")
        sub_district = self._current(attrs, "sub_district")
        if "district" in attrs or "sub_district" in attrs:
            if district not in DISTRICT_SUBDISTRICT_MAP:
                raise serializers.ValidationError({"district": f"Distrik '{district}' tidak dikenal."})
            if sub_district not in DISTRICT_SUBDISTRICT_MAP[district]:
                raise serializers.ValidationError(
                    {"sub_district": f"Kelurahan '{sub_district}' tidak berada di distrik {district}."}
                )
        return attrs


class ReportFilterSerializer(serializers.Serializer):
    """
    Query parameters for ``GET /api/reports/``.

    ``status``      : ``all`` (default) / ``Proses`` / ``Selesai``
    ``report_type`` : one of ``ReportType``
    ``search``      : reporter name, case type or report number
    ``ordering``    : sort key, ``-`` prefix for descending
    """

    status = serializers.ChoiceField(
        choices=["all", ReportStatus.PROSES, ReportStatus.SELESAI],
        required=False,
        default="all",
    )
    report_type = serializers.ChoiceField(choices=ReportType.choices, required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=255)
    ordering = serializers.CharField(required=False, max_length=50)

    def validate_ordering(self, value: str) -> str:
        if value.lstrip("-") not in ReportQueryService.SORT_KEYS:
            raise serializers.ValidationError(
                "Pilihan: " + ", ".join(sorted(ReportQueryService.SORT_KEYS))
            )
        return value


class VehicleFilterSerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=255)
    ordering = serializers.CharField(required=False, max_length=50)

    def validate_ordering(self, value: str) -> str:
        if value.lstrip("-") not in VehicleQueryService.SORT_KEYS:
            raise serializers.ValidationError(
                "Pilihan: " + ", ".join(sorted(VehicleQueryService.SORT_KEYS))
            )
        return value


class AssignUnitSerializer(serializers.Serializer):
    unit_id = serializers.IntegerField(min_value=1)


class AssignPersonnelSerializer(serializers.Serializer):
    personnel_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
    )


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[ReportStatus.PROSES, ReportStatus.SELESAI])
    status_detail = serializers.ChoiceField(
        choices=[d for d in StatusDetail.values if d != StatusDetail.DATA_DIHAPUS],
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if not is_allowed_detail(attrs["status"], attrs["status_detail"]):
            allowed = ", ".join(ALLOWED_STATUS_DETAILS[attrs["status"]])
            raise serializers.ValidationError(
                {"status_detail": f"Untuk status {attrs['status']} pilih salah satu: {allowed}."}
            )
        return attrs


# ═══════════════════════════════════════════════════════════════════
#  Response serializers (snapshot objects)
# ═══════════════════════════════════════════════════════════════════


class HistoryEntrySerializer(serializers.Serializer):
    status = serializers.CharField()
    status_detail = serializers.CharField()
    description = serializers.CharField()
    updated_at = serializers.DateTimeField()
    updated_by = serializers.CharField()


class StolenVehicleSerializer(serializers.Serializer):
    id = serializers.IntegerField(allow_null=True)
    vehicle_type = serializers.CharField()
    frame_number = serializers.CharField(allow_blank=True)
    engine_number = serializers.CharField(allow_blank=True)


class ReportListSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    report_type = serializers.CharField()
    display_number = serializers.CharField()
    short_number = serializers.CharField()
    report_date = serializers.DateTimeField()
    reporter_name = serializers.CharField()
    case_type = serializers.CharField()
    status = serializers.CharField()
    status_detail = serializers.CharField()
    assigned_unit_id = serializers.IntegerField(allow_null=True)
    assigned_unit_name = serializers.SerializerMethodField()
    assigned_personnel_ids = serializers.ListField(child=serializers.IntegerField())
    vehicle_count = serializers.SerializerMethodField()

    def get_assigned_unit_name(self, obj) -> str | None:
        snapshot = self.context.get("snapshot")
        return snapshot.unit_name(obj.assigned_unit_id) if snapshot else None

    def get_vehicle_count(self, obj) -> int:
        return len(obj.stolen_vehicles)


class ReportDetailSerializer(ReportListSerializer):
    report_year = serializers.IntegerField()
    report_number = serializers.CharField()
    police_model = serializers.CharField(allow_null=True)
    spkt = serializers.CharField()
    incident_date = serializers.DateField(allow_null=True)
    incident_time = serializers.TimeField(allow_null=True, format="%H:%M")
    incident_location = serializers.CharField()
    location_type = serializers.CharField()
    district = serializers.CharField()
    sub_district = serializers.CharField()
    loss_amount = serializers.IntegerField()
    assigned_personnel = serializers.SerializerMethodField()
    stolen_vehicles = StolenVehicleSerializer(many=True)
    status_history = HistoryEntrySerializer(many=True)

    def get_assigned_personnel(self, obj) -> list[dict[str, Any]]:
        snapshot = self.context.get("snapshot")
        if snapshot is None:
            return []
        result = []
        for pid in obj.assigned_personnel_ids:
            person = snapshot.personnel.get(pid)
            if person is not None:
                result.append({"id": person.id, "name": person.display_name, "unit_id": person.unit_id})
        return result


class VehicleRowSerializer(serializers.Serializer):
    id = serializers.IntegerField(allow_null=True)
    vehicle_type = serializers.CharField()
    frame_number = serializers.CharField(allow_blank=True)
    engine_number = serializers.CharField(allow_blank=True)
    report_id = serializers.IntegerField()
    report_number = serializers.CharField()
    report_date = serializers.DateTimeField()
    reporter_name = serializers.CharField()
    case_type = serializers.CharField()
    unit_name = serializers.CharField(allow_null=True)
