"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from explorer.api.views import DOMAIN_ROUTES, DomainRecordsView, HealthView, LocationView

urlpatterns = [
    path("location", LocationView.as_view(), name="location"),
    path("admin/health", HealthView.as_view(), name="admin-health"),
] + [
    path(route, DomainRecordsView.as_view(domain=domain), name=route)
    for route, domain in DOMAIN_ROUTES.items()
]
