from django.contrib import admin

from .models import LaborPosting


@admin.register(LaborPosting)
class LaborPostingAdmin(admin.ModelAdmin):
    list_display = ("id", "work_date", "worker_name", "product", "hours", "amount")
    list_select_related = ("product", "product__project")
    list_filter = ("work_date",)
    date_hierarchy = "work_date"
    search_fields = ("worker_name", "product__name", "product__project__name")
    ordering = ("-work_date", "-id")
