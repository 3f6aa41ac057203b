"""
Analytics app URL configuration.

URL prefix (registered in ``reskrim/urls.py``)::

    path('api/analytics/', include('analytics.urls'))

Endpoint summary
----------------
GET /api/analytics/dashboard/                — Role-aware dashboard tabs.
GET /api/analytics/crime-summary/            — Category x sub-stage tallies.
GET /api/analytics/crime-summary/export/     — Same, as .xlsx.
GET /api/analytics/crime-trend/              — Three month trend.
GET /api/analytics/crime-trend/export/       — Same, as .xlsx.
"""

from django.urls import path

from . import views

app_name = "analytics"

urlpatterns = [
    path("dashboard/", views.DashboardView.as_view(), name="dashboard"),
    path("crime-summary/", views.CrimeSummaryView.as_view(), name="crime-summary"),
    path("crime-summary/export/", views.CrimeSummaryExportView.as_view(), name="crime-summary-export"),
    path("crime-trend/", views.CrimeTrendView.as_view(), name="crime-trend"),
    path("crime-trend/export/", views.CrimeTrendExportView.as_view(), name="crime-trend-export"),
]
