from django.contrib import admin
from django.utils.html import format_html

from .models import Order, OrderItem, Supplier

STATUS_COLORS = {
    "draft": "#9ca3af",
    "sent": "#0ea5e9",
    "partially_received": "#f59e0b",
    "received": "#22c55e",
}


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "contact_person", "phone", "email")
    search_fields = ("name", "contact_person", "email", "categories")
    ordering = ("name",)


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ("material_name", "quantity", "unit", "unit_price", "expected_price", "status", "received_at")
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Order overview:
    - list: number, supplier, status badge, total, expected delivery
    - filter: status, order date
    - items and totals are snapshots and stay read-only
    """
    inlines = [OrderItemInline]

    list_display = ("id", "order_number", "supplier", "status_badge", "total_amount", "expected_delivery", "order_date")
    list_select_related = ("supplier",)
    list_filter = ("status", "order_date")
    date_hierarchy = "order_date"
    ordering = ("-order_date", "-id")
    search_fields = ("order_number", "supplier__name")
    readonly_fields = ("order_number", "total_amount", "version", "order_date", "updated_at")

    def status_badge(self, obj):
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            STATUS_COLORS.get(obj.status, "#9ca3af"),
            obj.status,
        )
    status_badge.short_description = "status"
    status_badge.admin_order_field = "status"
