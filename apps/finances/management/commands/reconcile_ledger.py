from __future__ import annotations

from django.core.management.base import BaseCommand  # type: ignore

from apps.bookings.application import coordinator
from apps.bookings.models import Booking
from apps.tenants.models import Tenant


class Command(BaseCommand):
    help = "Compares every booking's cached payment fields with its ledger"

    def add_arguments(self, parser):  # type: ignore
        parser.add_argument("--tenant", type=int, help="Only check bookings of this tenant id")
        parser.add_argument("--fix", action="store_true", help="Recalculate bookings that drifted")

    def handle(self, *args, **options):  # type: ignore
        bookings = Booking.all_tenants.filter(tenant__status=Tenant.Status.ACTIVE)
        if options["tenant"]:
            bookings = bookings.filter(tenant_id=options["tenant"])

        checked = drifted = 0
        for tenant_id, booking_id in list(bookings.order_by("pk").values_list("tenant_id", "pk")):
            checked += 1
            drift = coordinator.verify_booking_projection(tenant_id, booking_id)
            if not drift:
                continue
            drifted += 1
            fields = ", ".join(f"{name}: {stored} != {expected}" for name, (stored, expected) in drift.items())
            self.stdout.write(f"booking {booking_id} (tenant {tenant_id}): {fields}")
            if options["fix"]:
                coordinator.recalculate_booking_payments(tenant_id, booking_id)

        style = self.style.WARNING if drifted else self.style.SUCCESS
        action = "recalculated" if options["fix"] else "drifted"
        self.stdout.write(style(f"{checked} booking(s) checked, {drifted} {action}"))
