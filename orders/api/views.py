"""Orders API views.

List and create supplier orders, send them, edit and remove items of draft
orders, receive items, take materials from stock and delete orders. The
sourcing endpoint walks the order wizard funnel. All writes go through
``orders.services``.
"""

from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.api.errors import EngineErrorMixin
from orders import services
from orders.models import Order, OrderItem, Supplier
from orders.sourcing import MaterialSourcingIndex, SourcingSelection
from orders.suppliers import list_suppliers
from .permissions import IsDraftOrder
from .serializers import (
    ItemIdsSerializer,
    MaterialIdsSerializer,
    OrderCreateSerializer,
    OrderDeleteSerializer,
    OrderItemQuantitySerializer,
    OrderItemSerializer,
    OrderOutputSerializer,
    SourcingMaterialSerializer,
    SourcingQuerySerializer,
    SupplierSerializer,
)


# ----------------------------- helpers (module-level) -----------------------------

def _orders_queryset():
    return Order.objects.select_related("supplier").prefetch_related("items").order_by("-order_date", "-id")


def _render(order_id):
    return OrderOutputSerializer(_orders_queryset().get(pk=order_id)).data


def _query_ids(params, name):
    raw = params.get(name)
    if not raw:
        return []
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if any(not p.isdigit() for p in parts):
        raise ValidationError({name: "Must be a comma separated list of integers."})
    return [int(p) for p in parts]


# ------------------------------------ views ------------------------------------

class OrderListCreateAPIView(EngineErrorMixin, generics.ListCreateAPIView):
    """GET: orders, filterable by status and supplier_id; POST: create a draft order."""

    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method == "POST":
            return OrderCreateSerializer
        return OrderOutputSerializer

    def get_queryset(self):
        qs = _orders_queryset()
        params = self.request.query_params

        status_filter = params.get("status")
        if status_filter:
            if status_filter not in Order.Status.values:
                raise ValidationError({"status": f"Allowed values: {', '.join(Order.Status.values)}."})
            qs = qs.filter(status=status_filter)

        supplier_id = params.get("supplier_id")
        if supplier_id is not None:
            if not supplier_id.isdigit():
                raise ValidationError({"supplier_id": "Must be an integer."})
            qs = qs.filter(supplier_id=int(supplier_id))
        return qs

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.create_order(**serializer.validated_data)
        return Response(_render(order.pk), status=status.HTTP_201_CREATED)


class OrderRetrieveDestroyAPIView(EngineErrorMixin, generics.RetrieveDestroyAPIView):
    """
    GET: order with items.
    DELETE: remove the order; ?material_action=in_stock|reset decides what
    happens to its materials (required once the order has been sent).
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderOutputSerializer

    def get_queryset(self):
        return _orders_queryset()

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        params = OrderDeleteSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        services.delete_order(instance.pk, params.validated_data.get("material_action"))
        return Response(status=status.HTTP_204_NO_CONTENT)


class OrderSendAPIView(EngineErrorMixin, APIView):
    """POST /api/orders/{id}/send/ -> Draft to Sent."""

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        order = services.mark_sent(pk)
        return Response(_render(order.pk), status=status.HTTP_200_OK)


class OrderItemUpdateDestroyAPIView(EngineErrorMixin, generics.GenericAPIView):
    """
    PATCH /api/orders/{order_id}/items/{id}/  body: {"quantity": ...}
    DELETE /api/orders/{order_id}/items/{id}/

    Only items of draft orders can be changed.
    """

    permission_classes = [IsAuthenticated, IsDraftOrder]
    serializer_class = OrderItemQuantitySerializer

    def get_queryset(self):
        return Order.objects.all()

    def get_object(self):
        order = generics.get_object_or_404(self.get_queryset(), pk=self.kwargs["order_id"])
        self.check_object_permissions(self.request, order)
        generics.get_object_or_404(OrderItem.objects.filter(order=order), pk=self.kwargs["pk"])
        return order

    def patch(self, request, order_id, pk):
        self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.edit_quantity(order_id, pk, serializer.validated_data["quantity"])
        return Response(_render(order_id), status=status.HTTP_200_OK)

    def delete(self, request, order_id, pk):
        self.get_object()
        services.delete_items(order_id, [pk])
        return Response(_render(order_id), status=status.HTTP_200_OK)


class OrderItemsBulkDeleteAPIView(EngineErrorMixin, APIView):
    """POST /api/orders/{id}/items/delete/  body: {"item_ids": [...]}"""

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        serializer = ItemIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.delete_items(pk, serializer.validated_data["item_ids"])
        return Response(_render(pk), status=status.HTTP_200_OK)


class OrderItemsReceiveAPIView(EngineErrorMixin, APIView):
    """POST /api/order-items/receive/  body: {"item_ids": [...]} -> newly received items."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ItemIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        received = services.receive_items(serializer.validated_data["item_ids"])
        return Response(OrderItemSerializer(received, many=True).data, status=status.HTTP_200_OK)


class MaterialsInStockAPIView(EngineErrorMixin, APIView):
    """POST /api/materials/in-stock/  body: {"material_ids": [...]}"""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = MaterialIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        materials = services.mark_in_stock(serializer.validated_data["material_ids"])
        return Response({"material_ids": sorted(m.id for m in materials)}, status=status.HTTP_200_OK)


class SourcingAPIView(APIView):
    """
    GET /api/sourcing/?project_ids=1,2&product_ids=3&supplier=Name&material_ids=7

    Applies the choices in funnel order and returns what is selectable at
    every step together with the choices that survived pruning.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = request.query_params
        query = SourcingQuerySerializer(
            data={
                "project_ids": _query_ids(params, "project_ids"),
                "product_ids": _query_ids(params, "product_ids"),
                "supplier": params.get("supplier", ""),
                "material_ids": _query_ids(params, "material_ids"),
            }
        )
        query.is_valid(raise_exception=True)
        data = query.validated_data

        index = MaterialSourcingIndex.from_catalog()
        selection = SourcingSelection(index).select_projects(data["project_ids"])
        selection.select_products(data["product_ids"])
        selection.select_supplier(data["supplier"] or None)
        selection.select_materials(data["material_ids"])

        return Response(
            {
                "projects": sorted(index.projects_with_unordered_materials()),
                "products": sorted(selection.available_products()),
                "suppliers": sorted(selection.available_suppliers()),
                "materials": SourcingMaterialSerializer(selection.available_materials(), many=True).data,
                "selection": {
                    "project_ids": sorted(selection.project_ids),
                    "product_ids": sorted(selection.product_ids),
                    "supplier": selection.supplier,
                    "material_ids": sorted(selection.material_ids),
                },
            },
            status=status.HTTP_200_OK,
        )


class SupplierListCreateAPIView(generics.ListCreateAPIView):
    """GET: supplier directory (id, name, contact); POST: add a supplier."""

    queryset = Supplier.objects.all()
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer

    def list(self, request, *args, **kwargs):
        return Response(list_suppliers(), status=status.HTTP_200_OK)
