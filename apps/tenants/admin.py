from django.contrib import admin  # type: ignore

from .models import Tenant, TenantMembership


class TenantMembershipInline(admin.TabularInline):
    model = TenantMembership
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "status", "currency", "payment_window_hours", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [TenantMembershipInline]
    actions = ["suspend_tenants"]

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False

    @admin.action(description="Suspend selected tenants")
    def suspend_tenants(self, request, queryset):  # type: ignore
        for tenant in queryset:
            tenant.suspend()


@admin.register(TenantMembership)
class TenantMembershipAdmin(admin.ModelAdmin):
    list_display = ("tenant", "user", "role", "is_active")
    list_filter = ("role", "is_active")
    raw_id_fields = ("user",)
