# ledger/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from ledger.api.views import ConsistencyView, CustomerViewSet, LedgerEntryViewSet, ReconcileView

router = DefaultRouter()
router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"entries", LedgerEntryViewSet, basename="ledger-entries")

urlpatterns = [
    path("reconcile/", ReconcileView.as_view(), name="ledger-reconcile"),
    path("consistency/", ConsistencyView.as_view(), name="ledger-consistency"),
    path("", include(router.urls)),
]
