"""Offers API views.

List and create offers on the same endpoint; retrieve, replace and delete on
the detail route. Extra routes build a draft for a project, move an offer
through its workflow, report recomputed totals and per-product profit.
All writes go through ``offers.services``.
"""

from rest_framework import generics, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.api.errors import EngineErrorMixin
from offers import services
from offers.models import Offer
from offers.profit import product_profit
from .permissions import IsDraftOffer
from .serializers import (
    DocumentTotalsSerializer,
    OfferListSerializer,
    OfferSerializer,
    OfferStatusSerializer,
    OfferWriteSerializer,
    ProductProfitSerializer,
)


def _detail_queryset():
    return Offer.objects.select_related("project").prefetch_related("products__extras")


def _render(offer, request):
    fresh = _detail_queryset().get(pk=offer.pk)
    return OfferSerializer(fresh, context={"request": request}).data


class OffersPagination(PageNumberPagination):
    """Default pagination for offers with an adjustable page size via query param."""

    page_size = 10
    page_size_query_param = "page_size"
    max_page_size = 100


class OfferListCreateAPIView(EngineErrorMixin, generics.ListCreateAPIView):
    """GET: paginated list, filterable by project_id and status; POST: create a draft offer."""

    queryset = Offer.objects.all().select_related("project")
    pagination_class = OffersPagination
    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method == "GET":
            return OfferListSerializer
        return OfferWriteSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params

        project_id = params.get("project_id")
        if project_id is not None:
            if not project_id.isdigit():
                raise ValidationError({"project_id": "Must be an integer."})
            qs = qs.filter(project_id=int(project_id))

        status_filter = params.get("status")
        if status_filter:
            if status_filter not in Offer.Status.values:
                raise ValidationError({"status": f"Allowed values: {', '.join(Offer.Status.values)}."})
            qs = qs.filter(status=status_filter)

        return qs.order_by("-updated_at", "-id")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = dict(serializer.validated_data)
        payload.pop("version", None)
        offer = services.save_offer(payload)
        return Response(_render(offer, request), status=status.HTTP_201_CREATED)


class OfferRetrieveUpdateDestroyAPIView(EngineErrorMixin, generics.RetrieveUpdateDestroyAPIView):
    """GET: offer with lines, PUT: replace a draft offer, DELETE: remove the offer."""

    permission_classes = [IsAuthenticated, IsDraftOffer]
    http_method_names = ["get", "put", "delete", "head", "options"]

    def get_queryset(self):
        return _detail_queryset()

    def get_serializer_class(self):
        if self.request.method == "PUT":
            return OfferWriteSerializer
        return OfferSerializer

    def update(self, request, *args, **kwargs):
        """Replace header and every line; ``version`` guards against lost updates."""
        instance = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = dict(serializer.validated_data)
        expected_version = payload.pop("version", None)
        offer = services.save_offer(payload, offer_id=instance.pk, expected_version=expected_version)
        return Response(_render(offer, request), status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        services.delete_offer(instance.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class OfferDraftAPIView(EngineErrorMixin, APIView):
    """GET /api/offers/draft/{project_id}/ -> unsaved offer payload for the project's unclaimed products."""

    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        draft = services.build_draft(project_id)
        return Response(OfferWriteSerializer(draft).data, status=status.HTTP_200_OK)


class OfferStatusAPIView(EngineErrorMixin, APIView):
    """
    POST /api/offers/{id}/status/

    Body: {"status": "...", "version": optional int}
    Accepting an offer whose products are already claimed by another
    accepted offer of the project answers 409 with the conflicting ids.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        serializer = OfferStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        offer = services.change_status(
            pk,
            serializer.validated_data["status"],
            expected_version=serializer.validated_data.get("version"),
        )
        return Response(_render(offer, request), status=status.HTTP_200_OK)


class OfferTotalsAPIView(EngineErrorMixin, APIView):
    """GET /api/offers/{id}/totals/ -> subtotal, transport, discount, tax and total."""

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        totals = services.offer_totals(pk)
        return Response(DocumentTotalsSerializer(totals).data, status=status.HTTP_200_OK)


class ProductProfitAPIView(EngineErrorMixin, APIView):
    """GET /api/products/{id}/profit/ -> profit of a product priced by an accepted offer."""

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        result = product_profit(pk)
        if result is None:
            raise NotFound("Product has no accepted offer.")
        return Response(ProductProfitSerializer(result).data, status=status.HTTP_200_OK)
