"""Labor API serializers."""

from rest_framework import serializers

from projects.models import Product

from ..models import LaborPosting


class LaborPostingSerializer(serializers.ModelSerializer):
    product_id = serializers.PrimaryKeyRelatedField(source="product", queryset=Product.objects.all())

    class Meta:
        model = LaborPosting
        fields = ["id", "product_id", "worker_name", "work_date", "hours", "amount", "description", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):
        for field in ("hours", "amount"):
            value = attrs.get(field)
            if value is not None and value < 0:
                raise serializers.ValidationError({field: "Must be >= 0."})
        return attrs
