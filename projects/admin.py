from django.contrib import admin

from .models import Product, ProductMaterial, Project


class ProductInline(admin.TabularInline):
    model = Product
    extra = 0
    fields = ("name", "quantity", "material_cost", "status")
    show_change_link = True


class ProductMaterialInline(admin.TabularInline):
    model = ProductMaterial
    extra = 0
    fields = ("material_name", "quantity", "unit", "unit_price", "total_price", "supplier", "status")
    readonly_fields = ("total_price",)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    inlines = [ProductInline]
    list_display = ("id", "name", "client_name", "status", "deadline", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "client_name", "client_email")
    ordering = ("-id",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    inlines = [ProductMaterialInline]
    list_display = ("id", "name", "project", "quantity", "material_cost", "status")
    list_select_related = ("project",)
    list_filter = ("status",)
    search_fields = ("name", "project__name")
    ordering = ("project", "id")
