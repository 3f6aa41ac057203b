"""
Reports app URL configuration.

Included in the project ``urls.py`` under ``api/``.

Endpoint Map
------------
    GET    /reports/                          → list (status, search, ordering, page)
    POST   /reports/                          → create (admin)
    GET    /reports/{id}/                     → retrieve
    PUT    /reports/{id}/                     → update (admin)
    PATCH  /reports/{id}/                     → partial_update (admin)
    DELETE /reports/{id}/                     → soft delete (admin)
    POST   /reports/{id}/purge/               → hard delete (admin)
    POST   /reports/{id}/assign-unit/         → admin
    POST   /reports/{id}/assign-personnel/    → operator
    POST   /reports/{id}/update-status/       → operator
    GET    /reports/{id}/history/             → status history
    POST   /reports/refresh/                  → rebuild the caller's snapshot
    GET    /vehicles/                         → stolen vehicles (admin)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ReportViewSet, VehicleListView

app_name = "reports"

router = DefaultRouter()
router.register(r"reports", ReportViewSet, basename="report")

urlpatterns = [
    path("vehicles/", VehicleListView.as_view(), name="vehicle-list"),
    path("", include(router.urls)),
]
