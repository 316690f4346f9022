"""Currency conversion between the two supported currencies.

The secondary currency is pegged: one secondary unit equals ``PEG_RATE``
primary units. Offers declared in the secondary currency have their
monetary inputs converted once, when they are saved.
"""

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

PEG_RATE = Decimal("1.95583")
CENT = Decimal("0.01")

OFFER_MONEY_FIELDS = ("transport_cost", "onsite_discount")
LINE_MONEY_FIELDS = ("material_cost", "margin", "labor_daily_rate")
EXTRA_MONEY_FIELDS = ("unit_price",)


def primary_currency() -> str:
    return settings.ERP_PRIMARY_CURRENCY


def secondary_currency() -> str:
    return settings.ERP_SECONDARY_CURRENCY


def to_secondary(amount) -> Decimal:
    """Convert a primary-currency amount into the secondary currency."""
    value = Decimal(str(amount or 0)) / PEG_RATE
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _convert_fields(data: dict, fields) -> dict:
    for f in fields:
        if data.get(f) not in (None, ""):
            data[f] = to_secondary(data[f])
    return data


def convert_offer_payload(payload: dict, currency: str, stored_currency: str = None) -> dict:
    """Return a copy of an offer payload with money fields in ``currency``.

    Amounts are converted only when the document enters the secondary
    currency: a new offer declared in it, or a stored primary-currency offer
    re-saved in it. An offer already stored in the secondary currency holds
    converted amounts, so its payload is taken as is. No original is kept,
    so the conversion cannot be undone later.
    """
    if currency != secondary_currency() or stored_currency == secondary_currency():
        return payload
    data = _convert_fields(dict(payload), OFFER_MONEY_FIELDS)
    lines = []
    for line in payload.get("products") or []:
        line = _convert_fields(dict(line), LINE_MONEY_FIELDS)
        line["extras"] = [_convert_fields(dict(e), EXTRA_MONEY_FIELDS) for e in line.get("extras") or []]
        lines.append(line)
    data["products"] = lines
    return data
