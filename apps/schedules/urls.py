"""URL routing for schedule instances."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import ScheduleViewSet

router = SimpleRouter()
router.register(r"", ScheduleViewSet, basename="schedule")

urlpatterns = [
    path("", include(router.urls)),
]
