"""Offer cost calculation.

Pure functions over offer lines and offers. They accept model instances as
well as plain mappings (validated API payloads), treat every missing number
as zero and never convert currency: amounts are taken in whatever currency
they are stored in.
"""

from collections import namedtuple
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

DocumentTotals = namedtuple("DocumentTotals", ["subtotal", "transport", "discount", "tax_amount", "total"])
SharedCosts = namedtuple("SharedCosts", ["transport_share", "discount_share"])


# --------------------------- helpers (pure functions) ---------------------------

def _get(obj, name, default=None):
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _num(obj, name) -> Decimal:
    value = _get(obj, name)
    if value in (None, ""):
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _extras_of(line):
    extras = _get(line, "extras") or []
    if hasattr(extras, "all"):
        extras = extras.all()
    return extras


def money(value) -> Decimal:
    """Round to cents, half up."""
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


# ------------------------------------ lines ------------------------------------

def extra_total(extra) -> Decimal:
    return _num(extra, "quantity") * _num(extra, "unit_price")


def extras_total(line) -> Decimal:
    return sum((extra_total(e) for e in _extras_of(line)), ZERO)


def labor_total(line) -> Decimal:
    return _num(line, "labor_workers") * _num(line, "labor_days") * _num(line, "labor_daily_rate")


def selling_price(line) -> Decimal:
    """Unit price of a line: material + margin + extras + labor."""
    return _num(line, "material_cost") + _num(line, "margin") + extras_total(line) + labor_total(line)


def product_total(line) -> Decimal:
    """Line total: ``selling_price(line) * quantity``."""
    return selling_price(line) * _num(line, "quantity")


# ---------------------------------- documents ----------------------------------

def included_lines(offer):
    lines = _get(offer, "products") or []
    if hasattr(lines, "all"):
        lines = lines.all()
    return [line for line in lines if _get(line, "included", False)]


def subtotal(offer, line_total=product_total) -> Decimal:
    return sum((line_total(line) for line in included_lines(offer)), ZERO)


def effective_discount(offer) -> Decimal:
    """On-site discount, or zero when the offer has no on-site assembly."""
    return _num(offer, "onsite_discount") if _get(offer, "onsite_assembly", False) else ZERO


def document_totals(offer, line_total=product_total) -> DocumentTotals:
    """Subtotal, transport, discount, tax and grand total of an offer.

    base = subtotal + transport - discount; tax applies to the base only when
    the offer includes tax. The result is not clamped, so a discount larger
    than the base yields a negative total. ``line_total`` lets callers sum
    rounded line totals instead of exact ones.
    """
    sub = subtotal(offer, line_total)
    transport = _num(offer, "transport_cost")
    discount = effective_discount(offer)
    base = sub + transport - discount
    tax_amount = base * _num(offer, "tax_rate") / HUNDRED if _get(offer, "include_tax", False) else ZERO
    return DocumentTotals(sub, transport, discount, tax_amount, base + tax_amount)


def allocate_shared_costs(line_selling_price, offer_subtotal, transport, discount) -> SharedCosts:
    """Split transport and discount over a line by its share of revenue.

    Returns zero shares when the offer subtotal is zero.
    """
    offer_subtotal = Decimal(offer_subtotal or 0)
    if not offer_subtotal:
        return SharedCosts(ZERO, ZERO)
    ratio = Decimal(line_selling_price or 0) / offer_subtotal
    return SharedCosts(Decimal(transport or 0) * ratio, Decimal(discount or 0) * ratio)
