"""Orders app models.

Defines Supplier, Order and OrderItem. An OrderItem snapshots the name,
quantity and price of the ProductMaterial it was created from, so later
catalog price changes never touch open orders.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from projects.models import Product, ProductMaterial, Project


class Supplier(models.Model):
    """Supplier directory entry."""

    name = models.CharField(max_length=200, unique=True)
    contact_person = models.CharField(max_length=200, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    categories = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "suppliers"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Order(models.Model):
    """A purchase order placed with one supplier."""

    class Status(models.TextChoices):
        DRAFT = "draft", "draft"
        SENT = "sent", "sent"
        PARTIALLY_RECEIVED = "partially_received", "partially_received"
        RECEIVED = "received", "received"

    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="orders")
    order_number = models.CharField(max_length=30, blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    order_date = models.DateTimeField(auto_now_add=True)
    expected_delivery = models.DateField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    notes = models.TextField(blank=True, default="")
    version = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-order_date", "-id"]

    def __str__(self) -> str:
        return f"Order<{self.id} {self.order_number} {self.status}>"

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT


class OrderItem(models.Model):
    """One ordered material line."""

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        RECEIVED = "received", "received"

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    material = models.OneToOneField(ProductMaterial, on_delete=models.PROTECT, related_name="order_item")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name="order_items")

    material_name = models.CharField(max_length=200)
    quantity = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(0)]
    )
    unit = models.CharField(max_length=20, blank=True, default="")
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    expected_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    actual_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    received_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    received_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"OrderItem<{self.id} {self.material_name} {self.status}>"
