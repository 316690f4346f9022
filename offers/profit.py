"""Per-product profitability.

Revenue of a product is its line total in the accepted offer of its project.
Transport and discount are spread over lines by revenue share and reported,
but they are pass-through costs and stay out of the production profit.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from common import persistence
from labor.postings import labor_cost_for_product
from projects.models import Product

from . import pricing
from .models import Offer, OfferProduct


@dataclass
class ProductProfit:
    product_id: int
    offer_id: int
    selling_price: Decimal
    material_cost: Decimal
    labor_cost: Decimal
    transport_share: Decimal
    discount_share: Decimal
    profit: Decimal
    profit_margin: Optional[Decimal]


def accepted_line(product):
    return (
        OfferProduct.objects.filter(
            product_id=product.id,
            included=True,
            offer__project_id=product.project_id,
            offer__status=Offer.Status.ACCEPTED,
        )
        .select_related("offer")
        .prefetch_related("extras")
        .order_by("offer__accepted_at", "offer_id")
        .first()
    )


def product_profit(product_id) -> Optional[ProductProfit]:
    """Profit figures of a product, or None when no accepted offer prices it."""
    product = persistence.load(Product, product_id)
    line = accepted_line(product)
    if line is None:
        return None

    offer = line.offer
    selling = line.total_price
    material = pricing.money((line.material_cost + pricing.extras_total(line)) * line.quantity)
    labor = labor_cost_for_product(product.id)
    shares = pricing.allocate_shared_costs(
        selling, offer.subtotal, offer.transport_cost, pricing.effective_discount(offer)
    )
    profit = selling - material - labor
    margin = pricing.money(profit / selling * pricing.HUNDRED) if selling else None

    return ProductProfit(
        product_id=product.id,
        offer_id=offer.id,
        selling_price=selling,
        material_cost=material,
        labor_cost=labor,
        transport_share=pricing.money(shares.transport_share),
        discount_share=pricing.money(shares.discount_share),
        profit=profit,
        profit_margin=margin,
    )
