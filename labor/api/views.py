"""Labor API views.

List and create labor postings on the same endpoint. Supports filtering by
product_id and ordering by work_date or amount.
"""

import logging

from rest_framework import generics
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated

from labor.models import LaborPosting
from .serializers import LaborPostingSerializer

logger = logging.getLogger(__name__)


def _apply_filters_and_ordering(qs, params):
    v = params.get("product_id")
    if v:
        if not v.isdigit():
            raise ValidationError({"product_id": "Must be an integer."})
        qs = qs.filter(product_id=int(v))

    ordering = params.get("ordering")
    if ordering:
        allowed = {"work_date", "-work_date", "amount", "-amount"}
        if ordering not in allowed:
            raise ValidationError({"ordering": "Allowed values: work_date, -work_date, amount, -amount."})
        return qs.order_by(ordering, "-id")
    return qs.order_by("-work_date", "-id")


class LaborPostingListCreateAPIView(generics.ListCreateAPIView):
    """GET: list postings (filter/order). POST: book labor against a product."""

    queryset = LaborPosting.objects.all()
    serializer_class = LaborPostingSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return _apply_filters_and_ordering(super().get_queryset(), self.request.query_params)

    def perform_create(self, serializer):
        posting = serializer.save()
        logger.info("Labor posting %s: %s on product %s", posting.pk, posting.amount, posting.product_id)
