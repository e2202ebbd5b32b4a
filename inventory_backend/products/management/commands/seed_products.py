# products/management/commands/seed_products.py

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from ledger.models import Customer
from products.models import Bundle, BundleComponent, BundleExpense, Product, ProductVariant
from purchases.models import PurchaseLot


class Command(BaseCommand):
    help = "Seed products, variants, FIFO purchase lots, a bundle and a demo customer"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding products and stock..."))

        # -------------------------------
        # PRODUCTS + VARIANTS
        # -------------------------------
        products_data = [
            ("CHAIR", "Office Chair", [("CHAIR-BLK", "Black", "120.00"), ("CHAIR-GRY", "Grey", "125.00")]),
            ("DESK", "Standing Desk", [("DESK-120", "120cm", "450.00"), ("DESK-160", "160cm", "520.00")]),
            ("LAMP", "Desk Lamp", [("LAMP-LED", "LED", "35.00")]),
        ]

        variants = {}
        for sku, name, variant_rows in products_data:
            product, _ = Product.objects.get_or_create(sku=sku, defaults={"name": name})
            for v_sku, v_name, price in variant_rows:
                variant, _ = ProductVariant.objects.get_or_create(
                    sku=v_sku,
                    defaults={
                        "product": product,
                        "name": v_name,
                        "retail_price": Decimal(price),
                        "wholesale_price": Decimal(price) * Decimal("0.85"),
                    },
                )
                variants[v_sku] = variant

        # -------------------------------
        # PURCHASE LOTS (FIFO)
        # -------------------------------
        now = timezone.now()
        for variant in variants.values():
            if variant.purchase_lots.exists():
                continue
            list_price = variant.retail_price
            for i in range(2):  # 2 lots per variant, older one cheaper
                PurchaseLot.objects.create(
                    product=variant.product,
                    variant=variant,
                    supplier="Demo Supplier",
                    location="Main",
                    quantity=20 + i * 10,
                    unit_cost=(list_price * Decimal("0.5") + i).quantize(Decimal("0.01")),
                    purchase_date=now - timedelta(days=60 - i * 30),
                )

        # -------------------------------
        # BUNDLE
        # -------------------------------
        bundle, created = Bundle.objects.get_or_create(
            sku="WORKSTATION",
            defaults={"name": "Workstation Set", "base_price": Decimal("600.00")},
        )
        if created:
            BundleComponent.objects.create(bundle=bundle, variant=variants["DESK-120"], quantity=1)
            BundleComponent.objects.create(bundle=bundle, variant=variants["CHAIR-BLK"], quantity=1)
            BundleComponent.objects.create(bundle=bundle, variant=variants["LAMP-LED"], quantity=2)
            BundleExpense.objects.create(bundle=bundle, name="Assembly", amount=Decimal("25.00"), category="labour")

        Customer.objects.get_or_create(
            email="demo@example.com",
            defaults={"name": "Demo Customer", "company": "Demo Co"},
        )

        self.stdout.write(self.style.SUCCESS("Products, lots and bundle seeded successfully."))
