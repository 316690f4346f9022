"""Supplier order fulfillment.

Orders are built from unordered catalog materials, edited while Draft,
sent, and then received item by item. Order totals are always re-summed
from the current items.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.utils import timezone

from common import persistence
from common.exceptions import ValidationError
from common.numbers import document_number
from projects.catalog import sync_project_status
from projects.models import Product, ProductMaterial, Project

from .models import Order, OrderItem, Supplier

logger = logging.getLogger(__name__)

MATERIAL_ACTIONS = ("in_stock", "reset")
CENT = Decimal("0.01")
READY_MATERIAL_STATUSES = (ProductMaterial.Status.RECEIVED, ProductMaterial.Status.IN_STOCK)


# --------------------------- helpers (module-level) ---------------------------

def _require_ids(ids, field):
    ids = [i for i in (ids or []) if i is not None]
    if not ids:
        raise ValidationError("Select at least one entry.", field=field)
    return ids


def _require_draft(order):
    if not order.is_draft:
        raise ValidationError("Only draft orders can be changed.", field="status")


def _load_order(order_id):
    return persistence.load(Order, order_id, for_update=True)


def _set_material_status(material_ids, status):
    ProductMaterial.objects.filter(id__in=material_ids).update(status=status)


def recalculate_total(order):
    """Re-sum ``total_amount`` from the order's current items."""
    total = order.items.aggregate(s=Sum("expected_price"))["s"]
    order.total_amount = total if total is not None else Decimal("0")
    return order.total_amount


def _refresh_receipt_status(order):
    statuses = list(order.items.values_list("status", flat=True))
    received = sum(1 for s in statuses if s == OrderItem.Status.RECEIVED)
    if statuses and received == len(statuses):
        return Order.Status.RECEIVED
    if received:
        return Order.Status.PARTIALLY_RECEIVED
    return order.status


def _mark_products_ready(product_ids):
    for product in Product.objects.filter(id__in=product_ids).prefetch_related("materials"):
        materials = product.materials.all()
        if materials and all(m.status in READY_MATERIAL_STATUSES for m in materials):
            if product.status in (Product.Status.PENDING, Product.Status.MATERIALS_ORDERED):
                product.status = Product.Status.MATERIALS_READY
                product.save(update_fields=["status"])


# ---------------------------------- operations ----------------------------------

def create_order(supplier_id, material_ids, expected_delivery=None, notes=""):
    """Create a draft order for ``supplier_id`` from unordered materials.

    Prices are copied from the materials; every selected material becomes
    Ordered.
    """
    material_ids = _require_ids(material_ids, "material_ids")
    try:
        supplier = Supplier.objects.get(pk=supplier_id)
    except Supplier.DoesNotExist:
        raise ValidationError(f"Supplier {supplier_id} does not exist.", field="supplier_id")

    with persistence.document_transaction(f"Creating order for supplier {supplier_id}"):
        materials = list(
            ProductMaterial.objects.select_for_update()
            .select_related("product")
            .filter(id__in=material_ids)
            .order_by("id")
        )
        missing = set(material_ids) - {m.id for m in materials}
        if missing:
            raise ValidationError(f"Unknown materials: {sorted(missing)}.", field="material_ids")
        taken = [m.id for m in materials if not m.is_unordered]
        if taken:
            raise ValidationError(f"Materials already ordered or in stock: {taken}.", field="material_ids")

        order = Order(
            supplier=supplier,
            order_number=document_number("N"),
            expected_delivery=expected_delivery,
            notes=notes or "",
            total_amount=sum((m.total_price for m in materials), Decimal("0")),
        )
        persistence.save(order)
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    material=m,
                    product_id=m.product_id,
                    project_id=m.product.project_id,
                    material_name=m.material_name,
                    quantity=m.quantity,
                    unit=m.unit,
                    unit_price=m.unit_price,
                    expected_price=m.total_price,
                )
                for m in materials
            ]
        )
        _set_material_status([m.id for m in materials], ProductMaterial.Status.ORDERED)

    logger.info("Created order %s (%s) with %d items total=%s", order.pk, order.order_number, len(materials), order.total_amount)
    return order


def mark_sent(order_id):
    """Draft -> Sent. Pending products move to Materials Ordered, approved projects into production."""
    with persistence.document_transaction(f"Sending order {order_id}"):
        order = _load_order(order_id)
        _require_draft(order)
        order.status = Order.Status.SENT
        persistence.save(order)

        items = order.items.all()
        Product.objects.filter(
            id__in={i.product_id for i in items}, status=Product.Status.PENDING
        ).update(status=Product.Status.MATERIALS_ORDERED)
        for project in Project.objects.filter(id__in={i.project_id for i in items}):
            sync_project_status(project, Project.Status.IN_PRODUCTION, only_from=(Project.Status.APPROVED,))

    logger.info("Order %s sent", order.pk)
    return order


def edit_quantity(order_id, item_id, new_qty):
    """Change the quantity of a draft order item and re-sum the order."""
    new_qty = Decimal(str(new_qty))
    if new_qty < 0:
        raise ValidationError("Quantity must be >= 0.", field="quantity")
    with persistence.document_transaction(f"Editing order {order_id}"):
        order = _load_order(order_id)
        _require_draft(order)
        try:
            item = order.items.get(pk=item_id)
        except OrderItem.DoesNotExist:
            raise ValidationError(f"Item {item_id} is not part of order {order_id}.", field="item_id")
        item.quantity = new_qty
        item.expected_price = (new_qty * item.unit_price).quantize(CENT, rounding=ROUND_HALF_UP)
        item.save(update_fields=["quantity", "expected_price"])

        recalculate_total(order)
        persistence.save(order)

    logger.info("Order %s item %s quantity -> %s, total=%s", order.pk, item_id, new_qty, order.total_amount)
    return order


def delete_items(order_id, item_ids):
    """Remove items from a draft order; their materials go back to Not Ordered.

    An order left without items stays as an empty draft.
    """
    item_ids = _require_ids(item_ids, "item_ids")
    with persistence.document_transaction(f"Deleting items of order {order_id}"):
        order = _load_order(order_id)
        _require_draft(order)
        items = order.items.filter(id__in=item_ids)
        missing = set(item_ids) - set(items.values_list("id", flat=True))
        if missing:
            raise ValidationError(f"Items {sorted(missing)} are not part of order {order_id}.", field="item_ids")
        material_ids = list(items.values_list("material_id", flat=True))
        deleted, _ = items.delete()
        _set_material_status(material_ids, ProductMaterial.Status.NOT_ORDERED)

        recalculate_total(order)
        persistence.save(order)

    logger.info("Order %s: removed %d items, total=%s", order.pk, deleted, order.total_amount)
    return order


def receive_items(item_ids):
    """Mark order items (and their materials) Received.

    Already received items are skipped. Orders switch to Partially Received
    or Received depending on how many of their items have arrived.
    """
    item_ids = _require_ids(item_ids, "item_ids")
    now = timezone.now()
    with persistence.document_transaction("Receiving order items"):
        items = list(OrderItem.objects.select_for_update().select_related("order").filter(id__in=item_ids))
        missing = set(item_ids) - {i.id for i in items}
        if missing:
            raise ValidationError(f"Unknown order items: {sorted(missing)}.", field="item_ids")
        drafts = sorted({i.order_id for i in items if i.order.is_draft})
        if drafts:
            raise ValidationError(f"Orders {drafts} have not been sent yet.", field="item_ids")

        pending = [i for i in items if i.status != OrderItem.Status.RECEIVED]
        for item in pending:
            item.status = OrderItem.Status.RECEIVED
            item.received_quantity = item.quantity
            item.received_at = now
            item.save(update_fields=["status", "received_quantity", "received_at"])
        _set_material_status([i.material_id for i in pending], ProductMaterial.Status.RECEIVED)

        for order_id in sorted({i.order_id for i in pending}):
            order = _load_order(order_id)
            new_status = _refresh_receipt_status(order)
            if new_status != order.status:
                order.status = new_status
                persistence.save(order)
                logger.info("Order %s status -> %s", order.pk, new_status)

        _mark_products_ready({i.product_id for i in pending})

    logger.info("Received %d items (%d already received)", len(pending), len(items) - len(pending))
    return pending


def mark_in_stock(material_ids):
    """Declare unordered materials as available from stock, bypassing orders."""
    material_ids = _require_ids(material_ids, "material_ids")
    with persistence.document_transaction("Marking materials in stock"):
        materials = list(ProductMaterial.objects.select_for_update().filter(id__in=material_ids))
        missing = set(material_ids) - {m.id for m in materials}
        if missing:
            raise ValidationError(f"Unknown materials: {sorted(missing)}.", field="material_ids")
        taken = [m.id for m in materials if not m.is_unordered]
        if taken:
            raise ValidationError(f"Only unordered materials can be taken from stock: {taken}.", field="material_ids")
        _set_material_status(material_ids, ProductMaterial.Status.IN_STOCK)
        _mark_products_ready({m.product_id for m in materials})

    logger.info("Materials %s marked in stock", sorted(material_ids))
    return materials


def delete_order(order_id, material_action=None):
    """Delete an order.

    ``material_action`` decides what happens to the linked materials:
    ``"in_stock"`` keeps them as stock (they arrived without a tracked
    order), ``"reset"`` returns them to Not Ordered. Without an action, a draft order resets its materials and any
    other order is refused.
    """
    if material_action is not None and material_action not in MATERIAL_ACTIONS:
        raise ValidationError(f"material_action must be one of {MATERIAL_ACTIONS}.", field="material_action")
    with persistence.document_transaction(f"Deleting order {order_id}"):
        order = _load_order(order_id)
        if material_action is None:
            if not order.is_draft:
                raise ValidationError("Choose what happens to the materials of a sent order.", field="material_action")
            material_action = "reset"

        material_ids = list(order.items.values_list("material_id", flat=True))
        order.items.all().delete()
        if material_action == "in_stock":
            _set_material_status(material_ids, ProductMaterial.Status.IN_STOCK)
        else:
            _set_material_status(material_ids, ProductMaterial.Status.NOT_ORDERED)
        persistence.delete(order)

    logger.info("Deleted order %s (materials %s)", order_id, material_action)
