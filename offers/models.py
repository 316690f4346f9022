"""Offers app models.

Defines the Offer (quotation), its OfferProduct lines and the OfferExtra
add-ons of each line. Stored subtotal/total and line totals are always
re-derivable from the raw line inputs; they are recomputed on every save.
"""

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from projects.models import Product, Project

CENT = Decimal("0.01")


CURRENCY_CHOICES = [
    (settings.ERP_PRIMARY_CURRENCY, settings.ERP_PRIMARY_CURRENCY),
    (settings.ERP_SECONDARY_CURRENCY, settings.ERP_SECONDARY_CURRENCY),
]


def default_valid_until():
    return timezone.localdate() + timedelta(days=settings.ERP_OFFER_VALIDITY_DAYS)


def default_tax_rate():
    return Decimal(settings.ERP_DEFAULT_TAX_RATE)


class Offer(models.Model):
    """A customer-facing quotation for a project."""

    class Status(models.TextChoices):
        DRAFT = "draft", "draft"
        SENT = "sent", "sent"
        ACCEPTED = "accepted", "accepted"
        REJECTED = "rejected", "rejected"
        EXPIRED = "expired", "expired"
        REVISED = "revised", "revised"

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="offers")
    offer_number = models.CharField(max_length=30, blank=True, default="")
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=settings.ERP_PRIMARY_CURRENCY)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)

    include_tax = models.BooleanField(default=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=default_tax_rate)
    transport_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    onsite_assembly = models.BooleanField(default=False)
    onsite_discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    notes = models.TextField(blank=True, default="")
    valid_until = models.DateField(default=default_valid_until)
    accepted_at = models.DateTimeField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "offers"
        ordering = ["-id"]

    def __str__(self):
        return f"{self.offer_number or 'offer'} (#{self.pk})"

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT

    @property
    def is_accepted(self) -> bool:
        return self.status == self.Status.ACCEPTED


class OfferProduct(models.Model):
    """One priced product line of an offer."""

    offer = models.ForeignKey(Offer, on_delete=models.CASCADE, related_name="products")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="offer_lines")
    product_name = models.CharField(max_length=200, blank=True, default="")
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("1"))
    included = models.BooleanField(default=True)

    material_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    margin = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    labor_workers = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0"))
    labor_days = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0"))
    labor_daily_rate = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))

    selling_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    transport_share = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    discount_share = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))

    class Meta:
        db_table = "offer_products"
        ordering = ["id"]

    def __str__(self):
        return f"{self.product_name or self.product_id} on offer #{self.offer_id}"


class OfferExtra(models.Model):
    """An ad-hoc priced service or material attached to an offer line."""

    line = models.ForeignKey(OfferProduct, on_delete=models.CASCADE, related_name="extras")
    name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("1"))
    unit = models.CharField(max_length=20, blank=True, default="kom")
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    class Meta:
        db_table = "offer_extras"
        ordering = ["id"]

    def save(self, *args, **kwargs):
        self.total = (Decimal(self.quantity or 0) * Decimal(self.unit_price or 0)).quantize(CENT, rounding=ROUND_HALF_UP)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} x{self.quantity} {self.unit}"
