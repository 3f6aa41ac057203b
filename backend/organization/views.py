"""
Organization app ViewSets.

Architecture: Views are intentionally thin.
Every view follows a strict three-step pattern:

    1. Parse and validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Role checks and reference checks live in ``services.py``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    CreateAccountSerializer,
    PersonnelFilterSerializer,
    PersonnelSerializer,
    PersonnelWriteSerializer,
    UnitSerializer,
)
from .services import OperatorAccountService, PersonnelService, UnitService

WRITE_METHODS = ["get", "post", "patch", "delete", "head", "options"]


# ═══════════════════════════════════════════════════════════════════
#  Unit ViewSet
# ═══════════════════════════════════════════════════════════════════


class UnitViewSet(viewsets.ModelViewSet):
    """
    Units.  Everyone authenticated may read (operators only their own
    unit); writes are admin-only.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = UnitSerializer
    http_method_names = WRITE_METHODS
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return UnitService.list_units(self.request.user)

    @extend_schema(
        summary="Create unit",
        request=UnitSerializer,
        responses={201: UnitSerializer, 403: OpenApiResponse(description="Admin only.")},
        tags=["Organization"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = UnitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        unit = UnitService.create_unit(serializer.validated_data, request.user)
        return Response(UnitSerializer(unit).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Rename unit",
        request=UnitSerializer,
        responses={200: UnitSerializer},
        tags=["Organization"],
    )
    def partial_update(self, request: Request, *args, **kwargs) -> Response:
        unit = self.get_object()
        serializer = UnitSerializer(unit, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        unit = UnitService.update_unit(unit.pk, serializer.validated_data, request.user)
        return Response(UnitSerializer(unit).data)

    @extend_schema(
        summary="Delete unit",
        description="Fails with 409 while officers or reports still reference the unit.",
        responses={
            204: OpenApiResponse(description="Deleted."),
            409: OpenApiResponse(description="Unit still referenced."),
        },
        tags=["Organization"],
    )
    def destroy(self, request: Request, *args, **kwargs) -> Response:
        UnitService.delete_unit(int(kwargs["pk"]), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════════
#  Personnel ViewSet
# ═══════════════════════════════════════════════════════════════════


class PersonnelViewSet(viewsets.ModelViewSet):
    """
    Officers.  ``?unit=<id>`` narrows the list to one unit; operators
    only ever see their own unit's officers.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = PersonnelSerializer
    http_method_names = WRITE_METHODS
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        if self.action != "list":
            return PersonnelService.list_personnel(self.request.user)
        filters = PersonnelFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        return PersonnelService.list_personnel(
            self.request.user, unit_id=filters.validated_data.get("unit"),
        )

    @extend_schema(
        summary="List personnel",
        parameters=[OpenApiParameter(name="unit", type=int, required=False, description="Unit id.")],
        responses={200: PersonnelSerializer(many=True)},
        tags=["Organization"],
    )
    def list(self, request: Request, *args, **kwargs) -> Response:
        return super().list(request, *args, **kwargs)

    @extend_schema(
        summary="Create personnel",
        request=PersonnelWriteSerializer,
        responses={201: PersonnelSerializer, 403: OpenApiResponse(description="Admin only.")},
        tags=["Organization"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = PersonnelWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        personnel = PersonnelService.create_personnel(serializer.validated_data, request.user)
        return Response(PersonnelSerializer(personnel).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Update personnel",
        request=PersonnelWriteSerializer,
        responses={200: PersonnelSerializer},
        tags=["Organization"],
    )
    def partial_update(self, request: Request, *args, **kwargs) -> Response:
        serializer = PersonnelWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        personnel = PersonnelService.update_personnel(
            int(kwargs["pk"]), serializer.validated_data, request.user,
        )
        return Response(PersonnelSerializer(personnel).data)

    @extend_schema(
        summary="Delete personnel",
        description="Also removes the officer's report assignments and login account.",
        responses={204: OpenApiResponse(description="Deleted.")},
        tags=["Organization"],
    )
    def destroy(self, request: Request, *args, **kwargs) -> Response:
        PersonnelService.delete_personnel(int(kwargs["pk"]), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Create operator account",
        description="Create an Operator login bound to the officer's home unit. Admin only.",
        request=CreateAccountSerializer,
        responses={
            201: PersonnelSerializer,
            409: OpenApiResponse(description="Officer already has an account or email taken."),
        },
        tags=["Organization"],
    )
    @action(detail=True, methods=["post"], url_path="create-account")
    def create_account(self, request: Request, pk: str = None) -> Response:
        serializer = CreateAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        personnel = OperatorAccountService.create_account(
            int(pk), actor=request.user, **serializer.validated_data,
        )
        return Response(PersonnelSerializer(personnel).data, status=status.HTTP_201_CREATED)
