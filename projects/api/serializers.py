"""Projects API serializers: read-only views of the project catalog."""

from rest_framework import serializers

from ..models import Product, ProductMaterial, Project


class ProductMaterialSerializer(serializers.ModelSerializer):
    status = serializers.SerializerMethodField()

    class Meta:
        model = ProductMaterial
        fields = ["id", "material_name", "quantity", "unit", "unit_price", "total_price", "supplier", "status"]

    def get_status(self, obj):
        # Legacy rows without a status count as not ordered.
        return obj.status or ProductMaterial.Status.NOT_ORDERED


class ProductSerializer(serializers.ModelSerializer):
    materials = ProductMaterialSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "quantity",
            "height",
            "width",
            "depth",
            "material_cost",
            "status",
            "notes",
            "materials",
        ]


class ProjectListSerializer(serializers.ModelSerializer):
    product_count = serializers.IntegerField(source="products.count", read_only=True)

    class Meta:
        model = Project
        fields = ["id", "name", "client_name", "status", "deadline", "created_at", "product_count"]


class ProjectDetailSerializer(serializers.ModelSerializer):
    products = ProductSerializer(many=True, read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "name",
            "client_name",
            "client_phone",
            "client_email",
            "address",
            "notes",
            "status",
            "deadline",
            "created_at",
            "products",
        ]
