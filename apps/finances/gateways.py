"""
Payment gateway interface.

The ledger hands every pending attempt to the gateway named by the
``PAYMENT_GATEWAY`` setting and settles it from the returned result. Only
the offline gateway ships here: staff record cash, card-present and bank
transfer payments that already happened outside the system.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .models import Payment


@dataclass(frozen=True)
class GatewayResult:
    succeeded: bool
    failure_reason: str = ""
    reference: str = ""


class PaymentGateway(ABC):
    name = "gateway"

    @abstractmethod
    def process(self, payment: "Payment") -> GatewayResult:
        """Attempt the money movement described by ``payment``."""

    def refund(self, refund: "Payment") -> GatewayResult:
        return self.process(refund)


class OfflineGateway(PaymentGateway):
    """Accepts every attempt; the money moved outside the system."""

    name = "offline"

    def process(self, payment: "Payment") -> GatewayResult:
        return GatewayResult(succeeded=True, reference=f"OFFLINE-{payment.payment_number}")


def get_gateway() -> PaymentGateway:
    path = getattr(settings, "PAYMENT_GATEWAY", "apps.finances.gateways.OfflineGateway")
    return import_string(path)()
