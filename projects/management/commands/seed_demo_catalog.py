from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from rest_framework.authtoken.models import Token

from orders.models import Supplier
from projects.models import Product, ProductMaterial, Project

DEMO_USER = {"username": "demo", "password": "demo1234", "email": "demo@example.com"}

SUPPLIERS = [
    {"name": "Drvo Trade", "contact_person": "Amir H.", "phone": "+387 33 111 222", "categories": "boards"},
    {"name": "Okov Centar", "contact_person": "Lejla K.", "phone": "+387 33 333 444", "categories": "hardware"},
]

CATALOG = {
    "Kitchen Hodzic": {
        "client_name": "Emina Hodzic",
        "products": {
            "Upper cabinets": [
                ("Oak board 18mm", "3", "m2", "45.00", "Drvo Trade"),
                ("Hinges", "8", "kom", "2.50", "Okov Centar"),
            ],
            "Kitchen island": [
                ("Worktop 38mm", "1", "kom", "180.00", "Drvo Trade"),
                ("Drawer slides", "4", "kom", "12.00", "Okov Centar"),
            ],
        },
    },
    "Wardrobe Begic": {
        "client_name": "Tarik Begic",
        "products": {
            "Sliding wardrobe": [
                ("MDF 18mm", "6", "m2", "22.00", "Drvo Trade"),
                ("Sliding rails", "2", "kom", "35.00", "Okov Centar"),
            ],
        },
    },
}


class Command(BaseCommand):
    help = "Create demo suppliers, projects, products and materials plus a demo API user."

    def handle(self, *args, **options):
        for cfg in SUPPLIERS:
            supplier, created = Supplier.objects.get_or_create(name=cfg["name"], defaults=cfg)
            self.stdout.write(f"Supplier '{supplier.name}' {'created' if created else 'exists'}")

        for project_name, cfg in CATALOG.items():
            project, created = Project.objects.get_or_create(
                name=project_name, defaults={"client_name": cfg["client_name"]}
            )
            if not created:
                self.stdout.write(f"Project '{project_name}' already exists")
                continue

            for product_name, materials in cfg["products"].items():
                product = Product.objects.create(project=project, name=product_name)
                for name, qty, unit, price, supplier in materials:
                    ProductMaterial.objects.create(
                        product=product,
                        material_name=name,
                        quantity=Decimal(qty),
                        unit=unit,
                        unit_price=Decimal(price),
                        supplier=supplier,
                    )
                product.material_cost = sum(m.total_price for m in product.materials.all())
                product.save(update_fields=["material_cost"])
            self.stdout.write(self.style.SUCCESS(f"Created project '{project_name}'"))

        User = get_user_model()
        user, created = User.objects.get_or_create(
            username=DEMO_USER["username"], defaults={"email": DEMO_USER["email"]}
        )
        user.set_password(DEMO_USER["password"])
        user.save(update_fields=["password"])
        token, _ = Token.objects.get_or_create(user=user)
        self.stdout.write(f"  → user={user.username}, token={token.key}")

        self.stdout.write(self.style.SUCCESS("Demo catalog ready."))
