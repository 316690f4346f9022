"""Offer lifecycle.

Offers are created as Draft, re-saved in full while they stay Draft and
then moved through the workflow with ``change_status``. Accepting an offer
is refused while any of its included products is already part of another
accepted offer of the same project.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.utils import timezone

from common import persistence
from common.exceptions import ConflictError, ValidationError
from common.numbers import document_number
from projects.catalog import sync_project_status
from projects.models import Project

from . import pricing
from .conflicts import accepted_claims, find_conflicts
from .currency import convert_offer_payload, primary_currency
from .models import CURRENCY_CHOICES, Offer, OfferExtra, OfferProduct, default_tax_rate, default_valid_until

logger = logging.getLogger(__name__)

HEADER_FIELDS = (
    "currency",
    "include_tax",
    "tax_rate",
    "transport_cost",
    "onsite_assembly",
    "onsite_discount",
    "notes",
    "valid_until",
)
LINE_NUMBER_FIELDS = (
    "quantity",
    "material_cost",
    "margin",
    "labor_workers",
    "labor_days",
    "labor_daily_rate",
)
CLOSED_STATUSES = (Offer.Status.REJECTED, Offer.Status.EXPIRED)


# --------------------------- helpers (module-level) ---------------------------

def _decimal(value, field, default="0"):
    if value in (None, ""):
        value = default
    try:
        return pricing.money(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        raise ValidationError("Must be a number.", field=field)


def _normalize_line(raw, products_by_id):
    product_id = raw.get("product_id")
    product = products_by_id.get(product_id)
    if product is None:
        raise ValidationError(f"Product {product_id} does not belong to this project.", field="products")
    line = {
        "product_id": product.id,
        "product_name": raw.get("product_name") or product.name,
        "included": bool(raw.get("included", False)),
    }
    for f in LINE_NUMBER_FIELDS:
        line[f] = _decimal(raw.get(f), f, default="1" if f == "quantity" else "0")
    line["extras"] = [
        {
            "name": e.get("name") or "",
            "unit": e.get("unit") or "kom",
            "quantity": _decimal(e.get("quantity"), "quantity", default="1"),
            "unit_price": _decimal(e.get("unit_price"), "unit_price"),
        }
        for e in raw.get("extras") or []
    ]
    return line


def _normalize_payload(payload, project):
    """Validate an offer payload and return it with every number as a cent-rounded Decimal."""
    lines = payload.get("products") or []
    if not any(line.get("included") for line in lines):
        raise ValidationError("Select at least one product.", field="products")

    products_by_id = {p.id: p for p in project.products.all()}
    data = {
        "currency": payload.get("currency") or primary_currency(),
        "include_tax": bool(payload.get("include_tax", True)),
        "tax_rate": _decimal(payload.get("tax_rate"), "tax_rate", default=default_tax_rate()),
        "transport_cost": _decimal(payload.get("transport_cost"), "transport_cost"),
        "onsite_assembly": bool(payload.get("onsite_assembly", False)),
        "onsite_discount": _decimal(payload.get("onsite_discount"), "onsite_discount"),
        "notes": payload.get("notes") or "",
        "valid_until": payload.get("valid_until") or default_valid_until(),
        "products": [_normalize_line(line, products_by_id) for line in lines],
    }
    if data["currency"] not in dict(CURRENCY_CHOICES):
        raise ValidationError("Unsupported currency.", field="currency")
    return data


def _load_project(project_id):
    if not project_id:
        raise ValidationError("An offer must reference a project.", field="project_id")
    try:
        return Project.objects.prefetch_related("products").get(pk=project_id)
    except Project.DoesNotExist:
        raise ValidationError(f"Project {project_id} does not exist.", field="project_id")


def _rounded_line_total(line):
    return pricing.money(pricing.product_total(line))


def _write_lines(offer, data, totals):
    for raw in data["products"]:
        line_total = _rounded_line_total(raw)
        shares = pricing.SharedCosts(pricing.ZERO, pricing.ZERO)
        if raw["included"]:
            shares = pricing.allocate_shared_costs(line_total, totals.subtotal, totals.transport, totals.discount)
        line = OfferProduct.objects.create(
            offer=offer,
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            quantity=raw["quantity"],
            included=raw["included"],
            material_cost=raw["material_cost"],
            margin=raw["margin"],
            labor_workers=raw["labor_workers"],
            labor_days=raw["labor_days"],
            labor_daily_rate=raw["labor_daily_rate"],
            selling_price=pricing.money(pricing.selling_price(raw)),
            total_price=line_total,
            transport_share=pricing.money(shares.transport_share),
            discount_share=pricing.money(shares.discount_share),
        )
        for extra in raw["extras"]:
            OfferExtra.objects.create(line=line, **extra)


# ---------------------------------- operations ----------------------------------

def build_draft(project_id):
    """Return an unsaved draft offer payload seeded from the project's products.

    Products already included in an accepted offer of the project are left out.
    """
    project = _load_project(project_id)
    claimed = accepted_claims(project.id)
    lines = [
        {
            "product_id": p.id,
            "product_name": p.name,
            "quantity": Decimal(p.quantity),
            "included": True,
            "material_cost": p.material_cost,
            "margin": pricing.ZERO,
            "labor_workers": pricing.ZERO,
            "labor_days": pricing.ZERO,
            "labor_daily_rate": pricing.ZERO,
            "extras": [],
        }
        for p in project.products.all()
        if p.id not in claimed
    ]
    logger.info("Built draft for project %s with %d lines (%d claimed)", project.id, len(lines), len(claimed))
    return {
        "project_id": project.id,
        "status": Offer.Status.DRAFT,
        "currency": primary_currency(),
        "include_tax": True,
        "tax_rate": default_tax_rate(),
        "transport_cost": pricing.ZERO,
        "onsite_assembly": False,
        "onsite_discount": pricing.ZERO,
        "notes": "",
        "valid_until": default_valid_until(),
        "products": lines,
    }


def save_offer(payload, offer_id=None, expected_version=None):
    """Create an offer, or replace a draft offer and all of its lines.

    Monetary inputs of a new offer are entered in the primary currency and
    converted once here when the offer is declared in the secondary
    currency. Re-saving an offer already stored in the secondary currency
    keeps its amounts as given.
    """
    project = _load_project(payload.get("project_id"))
    data = _normalize_payload(payload, project)

    with persistence.document_transaction(f"Saving offer for project {project.id}"):
        if offer_id is None:
            offer = Offer(project=project, offer_number=document_number("P"), status=Offer.Status.DRAFT)
            stored_currency = None
        else:
            offer = persistence.load(Offer, offer_id, for_update=True)
            if not offer.is_draft:
                raise ValidationError("Only draft offers can be edited.", field="status")
            if offer.project_id != project.id:
                raise ValidationError("The project of an offer cannot be changed.", field="project_id")
            stored_currency = offer.currency

        data = convert_offer_payload(data, data["currency"], stored_currency)
        totals = pricing.document_totals(data, line_total=_rounded_line_total)
        for f in HEADER_FIELDS:
            setattr(offer, f, data[f])
        offer.subtotal = pricing.money(totals.subtotal)
        offer.total = pricing.money(totals.total)
        persistence.save(offer, expected_version)

        offer.products.all().delete()
        _write_lines(offer, data, totals)

    logger.info("Saved offer %s (%s) v%s total=%s %s", offer.pk, offer.offer_number, offer.version, offer.total, offer.currency)
    return offer


def _sync_project(offer, new_status):
    project = offer.project
    if new_status == Offer.Status.SENT:
        sync_project_status(project, Project.Status.OFFERED, only_from=(Project.Status.DRAFT,))
    elif new_status == Offer.Status.ACCEPTED:
        sync_project_status(project, Project.Status.APPROVED)
    elif new_status in CLOSED_STATUSES:
        others_open = (
            Offer.objects.filter(project_id=project.id)
            .exclude(pk=offer.pk)
            .exclude(status__in=CLOSED_STATUSES)
            .exists()
        )
        if not others_open:
            sync_project_status(project, Project.Status.CANCELLED, only_from=(Project.Status.OFFERED,))


def change_status(offer_id, new_status, expected_version=None):
    """Move an offer to ``new_status``.

    Accepting is refused with ConflictError (listing the product ids) when
    another accepted offer of the same project already includes any of the
    offer's included products; the offer is then left untouched.
    """
    if new_status not in Offer.Status.values:
        raise ValidationError(f"Unknown offer status '{new_status}'.", field="status")

    with persistence.document_transaction(f"Changing status of offer {offer_id}"):
        offer = persistence.load(Offer, offer_id, for_update=True, queryset=Offer.objects.select_related("project"))
        if offer.status == new_status:
            return offer

        if new_status == Offer.Status.ACCEPTED:
            # Accepts within one project are serialized on the project row.
            Project.objects.select_for_update().get(pk=offer.project_id)
            conflicts = find_conflicts(offer)
            if conflicts:
                logger.warning("Accept of offer %s blocked by products %s", offer.pk, conflicts)
                raise ConflictError(conflicts)
            offer.accepted_at = timezone.now()

        previous = offer.status
        offer.status = new_status
        persistence.save(offer, expected_version)
        _sync_project(offer, new_status)

    logger.info("Offer %s status %s -> %s", offer.pk, previous, new_status)
    return offer


def delete_offer(offer_id):
    with persistence.document_transaction(f"Deleting offer {offer_id}"):
        offer = persistence.load(Offer, offer_id, for_update=True)
        persistence.delete(offer)
    logger.info("Deleted offer %s", offer_id)


def offer_totals(offer_id):
    """Recompute the document totals of a stored offer from its lines."""
    offer = persistence.load(Offer, offer_id, queryset=Offer.objects.prefetch_related("products__extras"))
    return pricing.document_totals(offer, line_total=_rounded_line_total)
