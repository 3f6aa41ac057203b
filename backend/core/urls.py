"""
Core app URL configuration.

URL prefix (registered in ``reskrim/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET  /api/core/constants/   — Report enumerations and the district map.
"""

from django.urls import path

from . import views

app_name = "core"

urlpatterns = [
    path(
        "constants/",
        views.SystemConstantsView.as_view(),
        name="system-constants",
    ),
]
