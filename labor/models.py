"""Labor app models.

Defines the LaborPosting model: the recorded cost of work performed on a
product. Postings feed the per-product profit figures.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from projects.models import Product


class LaborPosting(models.Model):
    """Labor cost booked against a product."""

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="labor_postings")
    worker_name = models.CharField(max_length=200)
    work_date = models.DateField()
    hours = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0"), validators=[MinValueValidator(0)]
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    description = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "labor_postings"
        ordering = ("-work_date", "-id")

    def __str__(self) -> str:
        return f"LaborPosting<{self.id} {self.worker_name}->{self.product_id} {self.amount}>"
