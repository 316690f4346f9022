from django.contrib import admin
from django.utils.html import format_html

from .models import Offer, OfferExtra, OfferProduct

STATUS_COLORS = {
    "draft": "#9ca3af",
    "sent": "#0ea5e9",
    "accepted": "#22c55e",
    "rejected": "#ef4444",
    "expired": "#f59e0b",
    "revised": "#a855f7",
}


class OfferProductInline(admin.TabularInline):
    """
    Shows the priced lines inside the offer form. Lines are written by the
    offer services, so everything here is read-only.
    """
    model = OfferProduct
    extra = 0
    can_delete = False
    fields = ("product", "product_name", "quantity", "included", "selling_price", "total_price")
    readonly_fields = fields
    show_change_link = True


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """
    Offer overview:
    - status badge, project, totals
    - filter by status/currency, search by number and project
    - totals are derived from the lines and therefore read-only
    """
    inlines = [OfferProductInline]

    list_display = ("id", "offer_number", "project", "status_badge", "currency", "total", "valid_until", "updated_at")
    list_select_related = ("project",)
    search_fields = ("offer_number", "project__name", "project__client_name")
    list_filter = ("status", "currency")
    date_hierarchy = "created_at"
    ordering = ("-updated_at", "-id")
    readonly_fields = ("subtotal", "total", "accepted_at", "version", "created_at", "updated_at")

    def status_badge(self, obj):
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            STATUS_COLORS.get(obj.status, "#9ca3af"),
            obj.status,
        )
    status_badge.short_description = "status"
    status_badge.admin_order_field = "status"


class OfferExtraInline(admin.TabularInline):
    model = OfferExtra
    extra = 0
    fields = ("name", "quantity", "unit", "unit_price", "total")
    readonly_fields = ("total",)


@admin.register(OfferProduct)
class OfferProductAdmin(admin.ModelAdmin):
    list_display = ("id", "offer", "product_name", "quantity", "included", "total_price")
    list_select_related = ("offer", "product")
    search_fields = ("product_name", "offer__offer_number")
    list_filter = ("included",)
    ordering = ("offer", "id")
    inlines = [OfferExtraInline]
