"""
Immutable domain primitives shared across the scheduling core.

`Money` carries every fee and slot price; `StatusEnum` is the base of the
closed lifecycle enums whose transition tables live next to them.
"""

from abc import ABC
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

DEFAULT_CURRENCY = "MWK"
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ValueObject(ABC):
    """Frozen, compared by value, checked once on construction via `_validate`."""

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        pass


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Non-negative amount in a 3-letter currency, held to two decimals.

    Ints, floats and strings are coerced through `Decimal(str(...))` and
    rounded half-up, so `Money("10.005")` equals `Money(Decimal("10.01"))`.
    Arithmetic across currencies is refused.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def _validate(self) -> None:
        amount = self.amount if isinstance(self.amount, Decimal) else Decimal(str(self.amount))
        if amount < 0:
            raise ValueError("Money amount cannot be negative")
        if not self.currency or len(self.currency) != 3:
            raise ValueError("Currency must be a 3-letter ISO code")
        object.__setattr__(self, "amount", amount.quantize(_CENTS, ROUND_HALF_UP))
        object.__setattr__(self, "currency", self.currency.upper())

    def add(self, other: "Money") -> "Money":
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:,.2f}"

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(amount=Decimal("0"), currency=currency)


class StatusEnum(str, Enum):
    """
    Base for persisted status enums.

    Members compare equal to their stored string, so rows and JSON can
    carry the plain value.
    """

    def __str__(self) -> str:
        return self.value
