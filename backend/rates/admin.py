from django.contrib import admin, messages

from rates.models import RateDetail, RateMaster
from rates.services.rate_admin import audit_rate


class RateDetailInline(admin.TabularInline):
    model = RateDetail
    extra = 0
    fields = ("type", "region", "amount", "conditions", "is_active", "valid_from", "valid_to")


@admin.register(RateMaster)
class RateMasterAdmin(admin.ModelAdmin):
    list_display = ("id", "center_name", "tonnage", "is_active", "created_by", "updated_at")
    list_filter = ("is_active", "tonnage")
    search_fields = ("center_name",)
    readonly_fields = ("created_by", "created_at", "updated_at")
    inlines = [RateDetailInline]
    actions = ["validate_rates"]

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def validate_rates(self, request, queryset):
        any_warn = False
        for master in queryset:
            warnings = audit_rate(master.id)
            if warnings:
                any_warn = True
                for warning in warnings:
                    messages.warning(request, f"{master}: {warning}")
        if not any_warn:
            messages.info(request, "Selected rates look consistent.")

    validate_rates.short_description = "Validate selected rate configurations"


@admin.register(RateDetail)
class RateDetailAdmin(admin.ModelAdmin):
    list_display = ("id", "rate_master", "type", "region", "amount", "is_active", "valid_from", "valid_to")
    list_filter = ("type", "is_active")
    search_fields = ("rate_master__center_name", "region")
