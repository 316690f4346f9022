"""Projects app models.

The project catalog: a Project owns Products, a Product owns the raw
ProductMaterial rows needed to build it. The commercial engine reads this
catalog; only material and status fields are written by it.
"""

from decimal import ROUND_HALF_UP, Decimal

from django.db import models

CENT = Decimal("0.01")


class Project(models.Model):
    """A client engagement."""

    class Status(models.TextChoices):
        DRAFT = "draft", "draft"
        OFFERED = "offered", "offered"
        APPROVED = "approved", "approved"
        IN_PRODUCTION = "in_production", "in_production"
        COMPLETED = "completed", "completed"
        CANCELLED = "cancelled", "cancelled"

    name = models.CharField(max_length=200)
    client_name = models.CharField(max_length=200, blank=True, default="")
    client_phone = models.CharField(max_length=50, blank=True, default="")
    client_email = models.EmailField(blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    deadline = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "projects"
        ordering = ["-id"]

    def __str__(self):
        return f"{self.name} (#{self.pk})"


class Product(models.Model):
    """A piece of furniture built for a project."""

    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        MATERIALS_ORDERED = "materials_ordered", "materials_ordered"
        MATERIALS_READY = "materials_ready", "materials_ready"
        IN_PRODUCTION = "in_production", "in_production"
        DONE = "done", "done"

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="products")
    name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(default=1)
    height = models.DecimalField(max_digits=8, decimal_places=1, null=True, blank=True)
    width = models.DecimalField(max_digits=8, decimal_places=1, null=True, blank=True)
    depth = models.DecimalField(max_digits=8, decimal_places=1, null=True, blank=True)
    material_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "products"
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} (#{self.pk})"


class ProductMaterial(models.Model):
    """A raw material line of a product, sourced from a named supplier."""

    class Status(models.TextChoices):
        NOT_ORDERED = "not_ordered", "not_ordered"
        ORDERED = "ordered", "ordered"
        IN_STOCK = "in_stock", "in_stock"
        RECEIVED = "received", "received"

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="materials")
    material_name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("1"))
    unit = models.CharField(max_length=20, blank=True, default="kom")
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    supplier = models.CharField(max_length=200, blank=True, default="")
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.NOT_ORDERED, blank=True
    )

    class Meta:
        db_table = "product_materials"
        ordering = ["id"]

    def save(self, *args, **kwargs):
        self.total_price = (Decimal(self.quantity or 0) * Decimal(self.unit_price or 0)).quantize(CENT, rounding=ROUND_HALF_UP)
        super().save(*args, **kwargs)

    @property
    def is_unordered(self) -> bool:
        return not self.status or self.status == self.Status.NOT_ORDERED

    def __str__(self):
        return f"{self.material_name} x{self.quantity} {self.unit} ({self.status or 'not_ordered'})"
