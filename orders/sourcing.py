"""Material sourcing.

``MaterialSourcingIndex`` answers which materials still have to be ordered,
grouped by project, product and declared supplier. ``SourcingSelection``
walks the order wizard funnel (projects -> products -> supplier ->
materials) and drops every downstream choice that an upstream change made
unavailable.

Both work on an in-memory snapshot of the catalog and never write.
"""

from projects.catalog import list_projects


class MaterialSourcingIndex:
    """Unordered materials of a catalog snapshot."""

    def __init__(self, projects):
        self._rows = []
        for project in projects:
            for product in project.products.all():
                for material in product.materials.all():
                    if material.is_unordered:
                        self._rows.append((material, product, project))

    @classmethod
    def from_catalog(cls):
        return cls(list_projects())

    def unordered_materials(self) -> set:
        return {m.id for m, _, _ in self._rows}

    def projects_with_unordered_materials(self) -> set:
        return {project.id for _, _, project in self._rows}

    def products_with_unordered_materials(self, project_ids) -> set:
        project_ids = set(project_ids)
        return {product.id for _, product, project in self._rows if project.id in project_ids}

    def suppliers_for(self, product_ids) -> set:
        product_ids = set(product_ids)
        return {m.supplier for m, product, _ in self._rows if product.id in product_ids and m.supplier}

    def materials_for(self, product_ids, supplier) -> list:
        product_ids = set(product_ids)
        return [
            {
                "id": m.id,
                "material_name": m.material_name,
                "quantity": m.quantity,
                "unit": m.unit,
                "unit_price": m.unit_price,
                "total_price": m.total_price,
                "supplier": m.supplier,
                "product_id": product.id,
                "product_name": product.name,
                "project_id": project.id,
                "project_name": project.name,
            }
            for m, product, project in self._rows
            if product.id in product_ids and m.supplier == supplier
        ]


class SourcingSelection:
    """Current choices of the order wizard.

    Every ``select_*`` call keeps only choices the index can still offer
    and re-validates everything downstream of it.
    """

    def __init__(self, index):
        self.index = index
        self.project_ids = set()
        self.product_ids = set()
        self.supplier = None
        self.material_ids = set()

    def select_projects(self, project_ids):
        self.project_ids = set(project_ids) & self.index.projects_with_unordered_materials()
        self._prune()
        return self

    def select_products(self, product_ids):
        self.product_ids = set(product_ids)
        self._prune()
        return self

    def select_supplier(self, supplier):
        self.supplier = supplier
        self._prune()
        return self

    def select_materials(self, material_ids):
        self.material_ids = set(material_ids)
        self._prune()
        return self

    def available_products(self) -> set:
        return self.index.products_with_unordered_materials(self.project_ids)

    def available_suppliers(self) -> set:
        return self.index.suppliers_for(self.product_ids)

    def available_materials(self) -> list:
        if self.supplier is None:
            return []
        return self.index.materials_for(self.product_ids, self.supplier)

    def _prune(self):
        self.product_ids &= self.available_products()
        if self.supplier not in self.available_suppliers():
            self.supplier = None
        self.material_ids &= {m["id"] for m in self.available_materials()}
