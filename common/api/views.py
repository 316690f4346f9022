from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from offers.models import Offer
from orders.models import Order
from projects.models import ProductMaterial, Project

OPEN_ORDER_STATUSES = (Order.Status.SENT, Order.Status.PARTIALLY_RECEIVED)


def _expiring_offers(today):
    horizon = today + timedelta(days=settings.ERP_EXPIRY_WARNING_DAYS)
    qs = Offer.objects.filter(
        status=Offer.Status.SENT, valid_until__gte=today, valid_until__lte=horizon
    ).order_by("valid_until", "id")
    return [
        {"id": o.id, "offer_number": o.offer_number, "project": o.project_id, "valid_until": o.valid_until}
        for o in qs
    ]


def _overdue_orders(today):
    qs = Order.objects.filter(
        status__in=OPEN_ORDER_STATUSES, expected_delivery__lt=today
    ).order_by("expected_delivery", "id")
    return [
        {"id": o.id, "order_number": o.order_number, "supplier": o.supplier_id, "expected_delivery": o.expected_delivery}
        for o in qs
    ]


class BaseInfoAPIView(APIView):
    """
    GET /api/base-info/

    Returns dashboard counters and the read-only reminder signals:
    - project_count, offer_count, accepted_offer_count
    - open_order_count: sent or partially received orders
    - unordered_material_count: materials still to be ordered
    - expiring_offers: sent offers whose validity ends within the warning window
    - overdue_orders: open orders past their expected delivery date
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        today = timezone.localdate()
        data = {
            "project_count": Project.objects.count(),
            "offer_count": Offer.objects.count(),
            "accepted_offer_count": Offer.objects.filter(status=Offer.Status.ACCEPTED).count(),
            "open_order_count": Order.objects.filter(status__in=OPEN_ORDER_STATUSES).count(),
            "unordered_material_count": ProductMaterial.objects.filter(
                status__in=[ProductMaterial.Status.NOT_ORDERED, ""]
            ).count(),
            "expiring_offers": _expiring_offers(today),
            "overdue_orders": _overdue_orders(today),
        }
        return Response(data, status=status.HTTP_200_OK)
