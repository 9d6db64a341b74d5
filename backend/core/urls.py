"""
Root URL configuration for the Household Budget backend.

All API routes live under /api/; the Django admin stays at /admin/.
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def health(request):
    """Liveness probe used by the container orchestrator."""
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health/", health, name="health"),
    path("api/", include("users.urls")),
    path("api/", include("budget.urls")),
]
