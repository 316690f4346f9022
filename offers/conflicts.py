"""Cross-offer conflict detection.

A product included in an accepted offer belongs to that offer. Any other
offer for the same project that also includes it cannot be accepted
(first accepted wins). Offers of other projects never conflict.
"""

from .models import Offer, OfferProduct


def accepted_claims(project_id, exclude_offer_id=None) -> set:
    """Product ids included in accepted offers of ``project_id``."""
    qs = OfferProduct.objects.filter(
        offer__project_id=project_id,
        offer__status=Offer.Status.ACCEPTED,
        included=True,
    )
    if exclude_offer_id is not None:
        qs = qs.exclude(offer_id=exclude_offer_id)
    return set(qs.values_list("product_id", flat=True))


def find_conflicts(offer) -> list:
    """Included product ids of ``offer`` already claimed by another accepted offer."""
    own = set(offer.products.filter(included=True).values_list("product_id", flat=True))
    if not own:
        return []
    return sorted(own & accepted_claims(offer.project_id, exclude_offer_id=offer.pk))
