"""
Reports app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Reads are served from the caller's report snapshot; writes go through
``ReportService`` and then re-read the snapshot so the response reflects
the committed state.

ViewSets / Views
----------------
- ``ReportViewSet``   — CRUD plus workflow ``@action`` endpoints.
- ``VehicleListView`` — admin-only stolen-vehicle listing.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from analytics.summary import top_vehicle_types
from core.constants import REPORT_LIST_PAGE_SIZE, VEHICLE_LIST_PAGE_SIZE

from .serializers import (
    AssignPersonnelSerializer,
    AssignUnitSerializer,
    HistoryEntrySerializer,
    ReportDetailSerializer,
    ReportFilterSerializer,
    ReportListSerializer,
    ReportWriteSerializer,
    UpdateStatusSerializer,
    VehicleFilterSerializer,
    VehicleRowSerializer,
)
from .services import (
    ReportQueryService,
    ReportService,
    ReportSnapshotService,
    VehicleQueryService,
)


class ReportPagination(PageNumberPagination):
    page_size = REPORT_LIST_PAGE_SIZE


class VehiclePagination(PageNumberPagination):
    page_size = VEHICLE_LIST_PAGE_SIZE


class ReportViewSet(viewsets.ViewSet):
    """
    Reports resource.

    Reads are role-scoped (operators see their unit's reports); writes
    follow the role matrix documented in ``reports.services``.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _detail_response(self, request: Request, report_id: int, status_code: int = status.HTTP_200_OK) -> Response:
        report, snapshot = ReportQueryService.get_report(request.user, report_id)
        serializer = ReportDetailSerializer(report, context={"snapshot": snapshot})
        return Response(serializer.data, status=status_code)

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List reports",
        description="Role-scoped report list with status filter, search, ordering and pagination (20 per page).",
        parameters=[
            OpenApiParameter(name="status", type=str, required=False, description="all | Proses | Selesai"),
            OpenApiParameter(name="report_type", type=str, required=False, description="Laporan Polisi | Pengaduan Masyarakat"),
            OpenApiParameter(name="search", type=str, required=False, description="Reporter name, case type or number."),
            OpenApiParameter(name="ordering", type=str, required=False, description="Sort key, '-' prefix for descending."),
            OpenApiParameter(name="page", type=int, required=False),
        ],
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        """GET /api/reports/"""
        filter_serializer = ReportFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        reports, snapshot = ReportQueryService.list_reports(
            request.user, filter_serializer.validated_data,
        )
        paginator = ReportPagination()
        page = paginator.paginate_queryset(reports, request, view=self)
        serializer = ReportListSerializer(page, many=True, context={"snapshot": snapshot})
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        summary="Create report",
        request=ReportWriteSerializer,
        responses={201: ReportDetailSerializer, 403: OpenApiResponse(description="Admin only.")},
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        """POST /api/reports/ — admin only."""
        serializer = ReportWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportService.create_report(serializer.validated_data, request.user)
        return self._detail_response(request, report.pk, status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve report",
        responses={200: ReportDetailSerializer},
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        """GET /api/reports/{id}/"""
        return self._detail_response(request, int(pk))

    @extend_schema(
        summary="Replace report fields",
        request=ReportWriteSerializer,
        responses={200: ReportDetailSerializer},
        tags=["Reports"],
    )
    def update(self, request: Request, pk: str = None) -> Response:
        """PUT /api/reports/{id}/ — admin only."""
        return self._write(request, int(pk), partial=False)

    @extend_schema(
        summary="Partially update report",
        request=ReportWriteSerializer,
        responses={200: ReportDetailSerializer},
        tags=["Reports"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        """PATCH /api/reports/{id}/ — admin only."""
        return self._write(request, int(pk), partial=True)

    def _write(self, request: Request, report_id: int, *, partial: bool) -> Response:
        instance = ReportService.get_for_edit(report_id, request.user)
        serializer = ReportWriteSerializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        ReportService.update_report(report_id, serializer.validated_data, request.user)
        return self._detail_response(request, report_id)

    @extend_schema(
        summary="Soft delete report",
        description="Marks the report 'Dihapus' and appends a history entry. Admin only.",
        responses={204: OpenApiResponse(description="Deleted.")},
        tags=["Reports"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        """DELETE /api/reports/{id}/"""
        ReportService.soft_delete(int(pk), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ── Workflow @actions ─────────────────────────────────────────────

    @extend_schema(
        summary="Purge report",
        description="Permanently delete a report with its vehicles, history and assignments. Admin only.",
        request=None,
        responses={204: OpenApiResponse(description="Purged.")},
        tags=["Reports"],
    )
    @action(detail=True, methods=["post"], url_path="purge")
    def purge(self, request: Request, pk: str = None) -> Response:
        ReportService.purge(int(pk), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Assign unit",
        request=AssignUnitSerializer,
        responses={200: ReportDetailSerializer},
        tags=["Reports"],
    )
    @action(detail=True, methods=["post"], url_path="assign-unit")
    def assign_unit(self, request: Request, pk: str = None) -> Response:
        serializer = AssignUnitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ReportService.assign_unit(int(pk), serializer.validated_data["unit_id"], request.user)
        return self._detail_response(request, int(pk))

    @extend_schema(
        summary="Assign personnel",
        description="Replace the officers handling a report. Operator of the report's unit only.",
        request=AssignPersonnelSerializer,
        responses={200: ReportDetailSerializer},
        tags=["Reports"],
    )
    @action(detail=True, methods=["post"], url_path="assign-personnel")
    def assign_personnel(self, request: Request, pk: str = None) -> Response:
        serializer = AssignPersonnelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ReportService.assign_personnel(
            int(pk), serializer.validated_data["personnel_ids"], request.user,
        )
        return self._detail_response(request, int(pk))

    @extend_schema(
        summary="Update status",
        description="Change status / status detail and append a history entry. Operator of the report's unit only.",
        request=UpdateStatusSerializer,
        responses={200: ReportDetailSerializer},
        tags=["Reports"],
    )
    @action(detail=True, methods=["post"], url_path="update-status")
    def update_status(self, request: Request, pk: str = None) -> Response:
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ReportService.update_status(int(pk), actor=request.user, **serializer.validated_data)
        return self._detail_response(request, int(pk))

    @extend_schema(
        summary="Status history",
        responses={200: HistoryEntrySerializer(many=True)},
        tags=["Reports"],
    )
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request: Request, pk: str = None) -> Response:
        report, _ = ReportQueryService.get_report(request.user, int(pk))
        return Response(HistoryEntrySerializer(report.status_history, many=True).data)

    @extend_schema(
        summary="Rebuild report snapshot",
        request=None,
        responses={200: OpenApiResponse(description="Snapshot summary.")},
        tags=["Reports"],
    )
    @action(detail=False, methods=["post"], url_path="refresh")
    def refresh(self, request: Request) -> Response:
        snapshot = ReportSnapshotService.get_snapshot(request.user, refresh=True)
        return Response(
            {
                "report_count": len(snapshot.reports),
                "lookup_failures": snapshot.lookup_failures,
                "built_at": snapshot.built_at,
            },
            status=status.HTTP_200_OK,
        )


class VehicleListView(APIView):
    """
    **GET /api/vehicles/**

    Admin-only flattened list of stolen vehicles with their report,
    searchable and sortable, 15 per page, plus the top vehicle types.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Stolen vehicles",
        parameters=[
            OpenApiParameter(name="search", type=str, required=False),
            OpenApiParameter(name="ordering", type=str, required=False),
            OpenApiParameter(name="page", type=int, required=False),
        ],
        responses={200: VehicleRowSerializer(many=True)},
        tags=["Vehicles"],
    )
    def get(self, request: Request) -> Response:
        filter_serializer = VehicleFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        rows = VehicleQueryService.list_vehicles(request.user, filter_serializer.validated_data)
        paginator = VehiclePagination()
        page = paginator.paginate_queryset(rows, request, view=self)
        response = paginator.get_paginated_response(VehicleRowSerializer(page, many=True).data)
        response.data["top_vehicle_types"] = top_vehicle_types(rows)
        return response
