"""
URL configuration for the budget API.

Space-scoped resources are registered under ``spaces/<space_pk>/`` so the
space context mixin can resolve the caller's role from the URL.
"""

import logging

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

# Get structured logger for this module
logger = logging.getLogger(__name__)

router = DefaultRouter()

# Spaces, invites, members and aggregates
router.register(r"spaces", views.SpaceViewSet, basename="space")

# Categories of a space
router.register(
    r"spaces/(?P<space_pk>\d+)/categories",
    views.CategoryViewSet,
    basename="space-category",
)

# Ledger rows of a space
router.register(
    r"spaces/(?P<space_pk>\d+)/transactions",
    views.TransactionViewSet,
    basename="space-transaction",
)

urlpatterns = [
    path("", include(router.urls)),
]

logger.debug(
    "Budget API URLs configured",
    extra={
        "viewset_endpoints": len(router.registry),
        "total_routes": len(router.urls),
        "action": "url_configuration_loaded",
        "component": "urls",
    },
)
