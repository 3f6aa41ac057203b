"""
Organization app URL configuration.

Included in the project ``urls.py`` under ``api/``.

Endpoint Map
------------
    GET    /units/                              → list
    POST   /units/                              → create (admin)
    GET    /units/{id}/                         → retrieve
    PATCH  /units/{id}/                         → rename (admin)
    DELETE /units/{id}/                         → delete, 409 if referenced (admin)
    GET    /personnel/?unit=<id>                → list
    POST   /personnel/                          → create (admin)
    GET    /personnel/{id}/                     → retrieve
    PATCH  /personnel/{id}/                     → update (admin)
    DELETE /personnel/{id}/                     → delete with account (admin)
    POST   /personnel/{id}/create-account/      → operator account (admin)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import PersonnelViewSet, UnitViewSet

app_name = "organization"

router = DefaultRouter()
router.register(r"units", UnitViewSet, basename="unit")
router.register(r"personnel", PersonnelViewSet, basename="personnel")

urlpatterns = [
    path("", include(router.urls)),
]
