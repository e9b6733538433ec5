# lab_core/api/urls.py
from __future__ import annotations

from rest_framework.routers import DefaultRouter

from lab_core.lab.api.views import LabResultViewSet
from lab_core.orders.api.views import OrderViewSet

router = DefaultRouter()

router.register(r"orders", OrderViewSet, basename="orders")
router.register(r"lab/results", LabResultViewSet, basename="lab-results")

urlpatterns = router.urls
