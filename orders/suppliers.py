"""Read port for the supplier directory."""

from .models import Supplier


def list_suppliers():
    return [
        {"id": s.id, "name": s.name, "contact": s.contact_person or s.email or s.phone}
        for s in Supplier.objects.order_by("name")
    ]
