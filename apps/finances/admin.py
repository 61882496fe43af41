"""Admin registration for the payment ledger."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Ledger rows are append-only; the admin only reads them."""

    list_display = (
        "payment_number",
        "tenant",
        "booking",
        "kind",
        "method",
        "status",
        "amount",
        "currency",
        "created_at",
    )
    list_filter = ("kind", "status", "method", "tenant")
    search_fields = ("payment_number", "booking__booking_number", "transaction_id")

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
