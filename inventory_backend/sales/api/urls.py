# sales/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.views import InvoiceViewSet, QuotationViewSet

router = DefaultRouter()
router.register(r"invoices", InvoiceViewSet, basename="invoices")
router.register(r"quotations", QuotationViewSet, basename="quotations")

urlpatterns = [
    path("", include(router.urls)),
]
