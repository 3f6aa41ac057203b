"""
Analytics app serializers.

``DateRangeSerializer`` validates the crime-data query parameters.  The
rest are **response-only** serializers over the plain dicts produced by
``AnalyticsService``; they exist to document the output schema.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers


class DateRangeSerializer(serializers.Serializer):
    """
    ``start_date`` / ``end_date`` (ISO 8601 dates).  The range only
    applies when both are given; the end day is included entirely.
    """

    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        start = attrs.get("start_date")
        end = attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError(
                {"end_date": "Tanggal akhir tidak boleh sebelum tanggal mulai."}
            )
        return attrs


class DashboardQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(required=False, min_value=2000, max_value=2100)


# ════════════════════════════════════════════════════════════════════
#  Responses
# ════════════════════════════════════════════════════════════════════


class RankingEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False)
    label = serializers.CharField()
    count = serializers.IntegerField()
    width = serializers.FloatField(help_text="Bar width in percent of the largest entry.")


class StatCardsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    proses = serializers.IntegerField()
    selesai = serializers.IntegerField()
    stolen_vehicles = serializers.IntegerField()


class MonthBarSerializer(serializers.Serializer):
    label = serializers.CharField()
    total = serializers.IntegerField()
    selesai = serializers.IntegerField()
    width = serializers.FloatField()


class YearlyTrendSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    has_data = serializers.BooleanField()
    peak = serializers.IntegerField()
    months = MonthBarSerializer(many=True)


class DashboardSectionSerializer(serializers.Serializer):
    has_data = serializers.BooleanField()
    message = serializers.CharField(allow_blank=True)
    stats = StatCardsSerializer()
    yearly_trend = YearlyTrendSerializer()
    top_case_types = RankingEntrySerializer(many=True)
    top_units = RankingEntrySerializer(many=True)
    top_personnel = RankingEntrySerializer(many=True)


class DashboardScopeSerializer(serializers.Serializer):
    is_admin = serializers.BooleanField()
    unit_id = serializers.IntegerField(allow_null=True)
    unit_name = serializers.CharField(allow_null=True)


class DashboardSectionsSerializer(serializers.Serializer):
    laporan_polisi = DashboardSectionSerializer()
    pengaduan_masyarakat = DashboardSectionSerializer()


class DashboardSerializer(serializers.Serializer):
    scope = DashboardScopeSerializer()
    year = serializers.IntegerField()
    sections = DashboardSectionsSerializer()


class TallySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    selesai = serializers.IntegerField()
    lidik = serializers.IntegerField()
    sidik = serializers.IntegerField()
    p21 = serializers.IntegerField()
    diversi = serializers.IntegerField()
    rj = serializers.IntegerField()
    sp3 = serializers.IntegerField()


class TallyRowSerializer(TallySerializer):
    case_type = serializers.CharField()


class CrimeSummarySerializer(serializers.Serializer):
    period = serializers.CharField()
    start_date = serializers.DateField(allow_null=True)
    end_date = serializers.DateField(allow_null=True)
    has_data = serializers.BooleanField()
    rows = TallyRowSerializer(many=True)
    totals = TallySerializer()


class MonthCountSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    selesai = serializers.IntegerField()


class TrendRowSerializer(serializers.Serializer):
    case_type = serializers.CharField()
    months = MonthCountSerializer(many=True)


class CrimeTrendSerializer(serializers.Serializer):
    months = serializers.ListField(child=serializers.CharField())
    has_data = serializers.BooleanField()
    rows = TrendRowSerializer(many=True)
    totals = MonthCountSerializer(many=True)
