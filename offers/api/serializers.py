"""Offers API serializers.

Input serializers validate offer payloads before they reach the offer
services (which own all writes). Output serializers render stored offers
with their lines and extras, draft payloads, totals and product profit.
"""

from decimal import Decimal

from rest_framework import serializers

from ..models import CURRENCY_CHOICES, Offer, OfferExtra, OfferProduct


# --------------------------- helpers (pure functions) ---------------------------

def _money_field(**kwargs):
    kwargs.setdefault("max_digits", 14)
    kwargs.setdefault("decimal_places", 2)
    return serializers.DecimalField(**kwargs)


def _validate_non_negative(attrs, fields):
    for field in fields:
        value = attrs.get(field)
        if value is not None and value < 0:
            raise serializers.ValidationError({field: "Must be >= 0."})


# ------------------------------ input serializers ------------------------------

class OfferExtraInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    quantity = _money_field(max_digits=10, required=False, default=Decimal("1"))
    unit = serializers.CharField(max_length=20, required=False, allow_blank=True, default="kom")
    unit_price = _money_field(max_digits=12, required=False, default=Decimal("0"))


class OfferLineInputSerializer(serializers.Serializer):
    """One product line of an offer payload. Missing numbers count as zero."""

    product_id = serializers.IntegerField()
    product_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    quantity = _money_field(max_digits=10, required=False, default=Decimal("1"))
    included = serializers.BooleanField(required=False, default=False)
    material_cost = _money_field(max_digits=12, required=False, default=Decimal("0"))
    margin = _money_field(max_digits=12, required=False, default=Decimal("0"))
    labor_workers = _money_field(max_digits=6, required=False, default=Decimal("0"))
    labor_days = _money_field(max_digits=6, required=False, default=Decimal("0"))
    labor_daily_rate = _money_field(max_digits=12, required=False, default=Decimal("0"))
    extras = OfferExtraInputSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        _validate_non_negative(attrs, ["quantity", "labor_workers", "labor_days", "labor_daily_rate"])
        return attrs


class OfferWriteSerializer(serializers.Serializer):
    """Full offer payload: header fields plus every product line.

    Also used to render unsaved draft payloads, which share the same shape.
    """

    project_id = serializers.IntegerField()
    currency = serializers.ChoiceField(choices=CURRENCY_CHOICES, required=False)
    include_tax = serializers.BooleanField(required=False, default=True)
    tax_rate = _money_field(max_digits=5, required=False)
    transport_cost = _money_field(max_digits=12, required=False, default=Decimal("0"))
    onsite_assembly = serializers.BooleanField(required=False, default=False)
    onsite_discount = _money_field(max_digits=12, required=False, default=Decimal("0"))
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    valid_until = serializers.DateField(required=False)
    version = serializers.IntegerField(required=False, write_only=True)
    products = OfferLineInputSerializer(many=True)

    def validate_products(self, value):
        if not value:
            raise serializers.ValidationError("An offer needs at least one product line.")
        ids = [line["product_id"] for line in value]
        if len(set(ids)) != len(ids):
            raise serializers.ValidationError("Each product may appear only once.")
        return value

    def validate(self, attrs):
        _validate_non_negative(attrs, ["tax_rate", "transport_cost", "onsite_discount"])
        return attrs


class OfferStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Offer.Status.choices)
    version = serializers.IntegerField(required=False)


# ------------------------------ output serializers ------------------------------

class OfferExtraSerializer(serializers.ModelSerializer):
    class Meta:
        model = OfferExtra
        fields = ["id", "name", "quantity", "unit", "unit_price", "total"]


class OfferProductSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)
    extras = OfferExtraSerializer(many=True, read_only=True)

    class Meta:
        model = OfferProduct
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "included",
            "material_cost",
            "margin",
            "labor_workers",
            "labor_days",
            "labor_daily_rate",
            "selling_price",
            "total_price",
            "transport_share",
            "discount_share",
            "extras",
        ]


class OfferSerializer(serializers.ModelSerializer):
    """Stored offer with its lines."""

    project_id = serializers.IntegerField(read_only=True)
    products = OfferProductSerializer(many=True, read_only=True)

    class Meta:
        model = Offer
        fields = [
            "id",
            "offer_number",
            "project_id",
            "currency",
            "status",
            "include_tax",
            "tax_rate",
            "transport_cost",
            "onsite_assembly",
            "onsite_discount",
            "subtotal",
            "total",
            "notes",
            "valid_until",
            "accepted_at",
            "version",
            "created_at",
            "updated_at",
            "products",
        ]
        read_only_fields = fields


class OfferListSerializer(serializers.ModelSerializer):
    project_id = serializers.IntegerField(read_only=True)
    project_name = serializers.CharField(source="project.name", read_only=True)

    class Meta:
        model = Offer
        fields = [
            "id",
            "offer_number",
            "project_id",
            "project_name",
            "currency",
            "status",
            "total",
            "valid_until",
            "version",
            "updated_at",
        ]


class DocumentTotalsSerializer(serializers.Serializer):
    subtotal = _money_field()
    transport = _money_field()
    discount = _money_field()
    tax_amount = _money_field()
    total = _money_field()


class ProductProfitSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    offer_id = serializers.IntegerField()
    selling_price = _money_field()
    material_cost = _money_field()
    labor_cost = _money_field()
    transport_share = _money_field()
    discount_share = _money_field()
    profit = _money_field()
    profit_margin = _money_field(max_digits=10, allow_null=True)
