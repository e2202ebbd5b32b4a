# projects/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from projects.api.views import ExpenseViewSet, ProjectViewSet

router = DefaultRouter()
router.register(r"projects", ProjectViewSet, basename="projects")
router.register(r"expenses", ExpenseViewSet, basename="expenses")

urlpatterns = [
    path("", include(router.urls)),
]
