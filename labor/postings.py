"""Read port for labor postings."""

from decimal import Decimal

from django.db.models import Sum

from .models import LaborPosting


def postings_for_product(product_id):
    return list(LaborPosting.objects.filter(product_id=product_id).order_by("work_date", "id"))


def labor_cost_for_product(product_id) -> Decimal:
    total = LaborPosting.objects.filter(product_id=product_id).aggregate(s=Sum("amount"))["s"]
    return total if total is not None else Decimal("0")
