"""Orders API serializers.

Input serializers for creating orders, editing quantities, selecting items
and materials; output serializers for orders with their items, suppliers
and the sourcing funnel state.
"""

from rest_framework import serializers

from ..models import Order, OrderItem, Supplier
from ..services import MATERIAL_ACTIONS


# --------------------------- helpers (pure functions) ---------------------------

def _id_list(**kwargs):
    return serializers.ListField(child=serializers.IntegerField(min_value=1), **kwargs)


# ------------------------------ input serializers ------------------------------

class OrderCreateSerializer(serializers.Serializer):
    """Create a draft order for one supplier from unordered materials."""

    supplier_id = serializers.IntegerField()
    material_ids = _id_list(allow_empty=False)
    expected_delivery = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class ItemIdsSerializer(serializers.Serializer):
    item_ids = _id_list(allow_empty=False)


class MaterialIdsSerializer(serializers.Serializer):
    material_ids = _id_list(allow_empty=False)


class OrderDeleteSerializer(serializers.Serializer):
    material_action = serializers.ChoiceField(choices=MATERIAL_ACTIONS, required=False)


class SourcingQuerySerializer(serializers.Serializer):
    """Current wizard choices, each step optional."""

    project_ids = _id_list(required=False, default=list)
    product_ids = _id_list(required=False, default=list)
    supplier = serializers.CharField(required=False, allow_blank=True, default="")
    material_ids = _id_list(required=False, default=list)


# ------------------------------ output serializers ------------------------------

class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ["id", "name", "contact_person", "phone", "email", "address", "categories"]


class OrderItemSerializer(serializers.ModelSerializer):
    material_id = serializers.IntegerField(read_only=True)
    product_id = serializers.IntegerField(read_only=True)
    project_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "material_id",
            "product_id",
            "project_id",
            "material_name",
            "quantity",
            "unit",
            "unit_price",
            "expected_price",
            "actual_price",
            "received_quantity",
            "status",
            "received_at",
        ]
        read_only_fields = fields


class OrderOutputSerializer(serializers.ModelSerializer):
    supplier_id = serializers.IntegerField(read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "supplier_id",
            "supplier_name",
            "status",
            "order_date",
            "expected_delivery",
            "total_amount",
            "notes",
            "version",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class SourcingMaterialSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    material_name = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2)
    unit = serializers.CharField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    supplier = serializers.CharField()
    product_id = serializers.IntegerField()
    product_name = serializers.CharField()
    project_id = serializers.IntegerField()
    project_name = serializers.CharField()
