"""
Domain Error Taxonomy

Every error the consistency engine raises on purpose derives from
DomainError and carries a stable machine ``code`` plus a ``details()``
payload, so the API layer can map it without string matching.

- ValidationError: bad input, rejected before a transaction starts
- BusinessRuleViolation: capacity, state machine and refund rules
- AuthorizationError: tenant isolation
- TransientError: retryable infrastructure conditions
"""

from decimal import Decimal


class DomainError(Exception):
    """Base class for expected, caller-visible failures."""

    code = 'domain_error'
    retryable = False

    def __init__(self, message: str = ''):
        super().__init__(message or self.default_message())
        self.message = str(self)

    def default_message(self) -> str:
        return 'Operation rejected.'

    def details(self) -> dict:
        return {}

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.message, **self.details()}


# ===== Validation =====

class ValidationError(DomainError):
    """Input has the wrong shape or range (e.g. participant_count <= 0)."""

    code = 'validation_error'

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)

    def details(self) -> dict:
        return {'field': self.field} if self.field else {}


# ===== Business rules =====

class BusinessRuleViolation(DomainError):
    code = 'business_rule_violation'


class CapacityExceeded(BusinessRuleViolation):
    """The schedule cannot take the requested number of participants."""

    code = 'capacity_exceeded'

    def __init__(self, schedule_id: int, requested: int, available: int):
        self.schedule_id = schedule_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Schedule {schedule_id} has {available} spot(s) left; {requested} requested."
        )

    def details(self) -> dict:
        return {'schedule_id': self.schedule_id, 'requested': self.requested, 'available': self.available}


class InvalidStateTransition(BusinessRuleViolation):
    """A booking event was attempted from a state that does not allow it."""

    code = 'invalid_state_transition'

    def __init__(self, current_state: str, event: str, target: str | None = None):
        self.current_state = current_state
        self.event = event
        self.target = target
        if target:
            message = f"Cannot move booking from '{current_state}' to '{target}'."
        else:
            message = f"Cannot apply '{event}' to a booking in state '{current_state}'."
        super().__init__(message)

    def details(self) -> dict:
        payload = {'current_state': self.current_state, 'event': self.event}
        if self.target:
            payload['target_state'] = self.target
        return payload


class RefundExceedsPayment(BusinessRuleViolation):
    """Refund request is larger than what remains refundable on the payment."""

    code = 'refund_exceeds_payment'

    def __init__(self, payment_id: int, requested: Decimal, refundable_amount: Decimal):
        self.payment_id = payment_id
        self.requested = requested
        self.refundable_amount = refundable_amount
        super().__init__(
            f"Refund of {requested} exceeds refundable amount {refundable_amount} "
            f"on payment {payment_id}."
        )

    def details(self) -> dict:
        return {
            'payment_id': self.payment_id,
            'requested': str(self.requested),
            'refundable_amount': str(self.refundable_amount),
        }


# ===== Authorization =====

class AuthorizationError(DomainError):
    code = 'authorization_error'


class CrossTenantAccess(AuthorizationError):
    """
    The entity is not visible to the acting tenant.

    Raised identically whether the entity belongs to another tenant or does
    not exist at all, so existence never leaks across tenants.
    """

    code = 'cross_tenant_access'

    def __init__(self, resource: str = 'resource'):
        self.resource = resource
        super().__init__(f"You do not have access to this {resource}.")

    def details(self) -> dict:
        return {'resource': self.resource}


class TenantInactive(AuthorizationError):
    """The acting tenant is suspended or cancelled."""

    code = 'tenant_inactive'

    def default_message(self) -> str:
        return 'This account has been suspended or is inactive.'


# ===== Transient =====

class TransientError(DomainError):
    code = 'transient_error'
    retryable = True


class LockTimeout(TransientError):
    """A row lock could not be acquired within the configured wait."""

    code = 'lock_timeout'

    def __init__(self, resource: str, timeout_ms: int | None = None):
        self.resource = resource
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out waiting for a lock on {resource}; retry later.")

    def details(self) -> dict:
        return {'resource': self.resource, 'retryable': True}
