"""
Analytics app views — **Thin Views**.

Each view validates its query parameters, builds an ``AnalyticsService``
for the authenticated user and serialises the result.  Export endpoints
return the workbook bytes as an attachment.

Endpoints
---------
- ``DashboardView``          GET /api/analytics/dashboard/
- ``CrimeSummaryView``       GET /api/analytics/crime-summary/
- ``CrimeSummaryExportView`` GET /api/analytics/crime-summary/export/
- ``CrimeTrendView``         GET /api/analytics/crime-trend/
- ``CrimeTrendExportView``   GET /api/analytics/crime-trend/export/
"""

from __future__ import annotations

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .exports import XLSX_CONTENT_TYPE
from .serializers import (
    CrimeSummarySerializer,
    CrimeTrendSerializer,
    DashboardQuerySerializer,
    DashboardSerializer,
    DateRangeSerializer,
)
from .services import AnalyticsService

DATE_RANGE_PARAMETERS = [
    OpenApiParameter(name="start_date", type=OpenApiTypes.DATE, required=False),
    OpenApiParameter(name="end_date", type=OpenApiTypes.DATE, required=False),
]


def _xlsx_response(filename: str, content: bytes) -> HttpResponse:
    response = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def _date_range(request: Request) -> dict:
    serializer = DateRangeSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return {
        "start": serializer.validated_data.get("start_date"),
        "end": serializer.validated_data.get("end_date"),
    }


class DashboardView(APIView):
    """
    **GET /api/analytics/dashboard/[?year=<yyyy>]**

    Stat cards, top case types, yearly trend and (admins only) unit and
    personnel rankings, for police reports and public complaints
    separately.  Operators only see their unit's reports.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Dashboard",
        parameters=[OpenApiParameter(name="year", type=int, required=False, description="Defaults to the current year.")],
        responses={200: DashboardSerializer},
        tags=["Analytics"],
    )
    def get(self, request: Request) -> Response:
        query = DashboardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = AnalyticsService(request.user).dashboard(query.validated_data.get("year"))
        return Response(DashboardSerializer(data).data, status=status.HTTP_200_OK)


class CrimeSummaryView(APIView):
    """
    **GET /api/analytics/crime-summary/?start_date=&end_date=**

    Per case type totals by sub-stage.  Without both dates every report
    in scope is tallied.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Crime summary",
        parameters=DATE_RANGE_PARAMETERS,
        responses={200: CrimeSummarySerializer, 400: OpenApiResponse(description="Invalid date range.")},
        tags=["Analytics"],
    )
    def get(self, request: Request) -> Response:
        data = AnalyticsService(request.user).crime_summary(**_date_range(request))
        return Response(CrimeSummarySerializer(data).data, status=status.HTTP_200_OK)


class CrimeSummaryExportView(APIView):
    """**GET /api/analytics/crime-summary/export/** — ``.xlsx`` download."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Export crime summary",
        parameters=DATE_RANGE_PARAMETERS,
        responses={(200, XLSX_CONTENT_TYPE): OpenApiTypes.BINARY},
        tags=["Analytics"],
    )
    def get(self, request: Request) -> HttpResponse:
        filename, content = AnalyticsService(request.user).export_summary(**_date_range(request))
        return _xlsx_response(filename, content)


class CrimeTrendView(APIView):
    """
    **GET /api/analytics/crime-trend/**

    Totals per case type for the current month and the two before it.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Three month crime trend",
        responses={200: CrimeTrendSerializer},
        tags=["Analytics"],
    )
    def get(self, request: Request) -> Response:
        data = AnalyticsService(request.user).crime_trend()
        return Response(CrimeTrendSerializer(data).data, status=status.HTTP_200_OK)


class CrimeTrendExportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Export three month crime trend",
        responses={(200, XLSX_CONTENT_TYPE): OpenApiTypes.BINARY},
        tags=["Analytics"],
    )
    def get(self, request: Request) -> HttpResponse:
        filename, content = AnalyticsService(request.user).export_trend()
        return _xlsx_response(filename, content)
