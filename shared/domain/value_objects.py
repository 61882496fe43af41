"""
Common Value Objects

- Money: a monetary amount held at the minor-unit precision of its currency

Amounts are always Decimal. Binary floats are refused at the boundary so
equality checks such as ``amount_paid >= total_amount`` stay exact.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import total_ordering

from shared.domain.base import ValueObject

# ISO-4217 currencies without a minor unit. Everything else uses cents.
ZERO_DECIMAL_CURRENCIES = frozenset({'BIF', 'CLP', 'DJF', 'GNF', 'ISK', 'JPY', 'KMF', 'KRW', 'PYG', 'RWF', 'UGX', 'VND', 'VUV', 'XAF', 'XOF', 'XPF'})


def minor_unit_exponent(currency: str) -> Decimal:
    """Quantization exponent for a currency, e.g. Decimal('0.01') for USD."""
    if currency.upper() in ZERO_DECIMAL_CURRENCIES:
        return Decimal('1')
    return Decimal('0.01')


def to_decimal(value) -> Decimal:
    """
    Convert user input to Decimal

    Accepts Decimal, int and numeric strings. Floats are rejected because
    they cannot represent most currency amounts exactly.
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary amount")
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be binary floating point; pass Decimal or str")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a valid amount: {value!r}") from exc
    else:
        raise TypeError(f"Unsupported amount type: {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return result


@total_ordering
@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Immutable, never negative, always exact at the currency's minor unit.
    Amounts with more precision than the currency supports are rejected
    rather than silently rounded.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(f"Invalid currency code: {self.currency!r}")
        object.__setattr__(self, 'currency', self.currency.upper())

        amount = to_decimal(self.amount)
        exponent = minor_unit_exponent(self.currency)
        quantized = amount.quantize(exponent)
        if quantized != amount:
            raise ValueError(
                f"Amount {amount} has more precision than {self.currency} allows ({exponent})"
            )
        if quantized < 0:
            raise ValueError("Amount cannot be negative")
        object.__setattr__(self, 'amount', quantized)

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(Decimal('0'), currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def _check_currency(self, other: 'Money'):
        if not isinstance(other, Money):
            raise TypeError("Can only combine Money with Money")
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} and {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: int) -> 'Money':
        """Multiply by a whole quantity (participants, seats)"""
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError("Money can only be multiplied by an integer quantity")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __str__(self):
        return f"{self.amount:,} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"
