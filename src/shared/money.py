"""Money value object for exact currency arithmetic.

Amounts are held as an integer count of minor units (cents) alongside an
ISO 4217 currency code. Every currency is treated as having 100 minor units.
Conversions from decimal amounts and all scalar arithmetic round half-up to
the nearest minor unit; nothing is ever stored as a binary float.

Money is shared by the ordering and payments contexts. It is a plain value
object contract here; domains that hold it register it themselves.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean import invariant
from protean.core.value_object import BaseValueObject
from protean.exceptions import ValidationError
from protean.fields import Integer, String

MINOR_UNITS = 100

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "BRL": "R$",
}

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class CurrencyMismatch(ValidationError):
    """Raised when two Money values with different currencies are combined."""

    def __init__(self, left, right):
        self.left = left
        self.right = right
        super().__init__(
            {"currency": [f"Cannot perform operation on different currencies: {left} vs {right}"]},
        )


def _to_decimal(value, name: str = "amount") -> Decimal:
    """Convert ints, strings, floats and Decimals to an exact Decimal.

    Floats go through ``str()`` so that ``10.556`` becomes ``Decimal("10.556")``
    rather than its binary approximation.
    """
    if isinstance(value, bool):
        raise ValidationError({name: [f"{name.capitalize()} must be numeric"]})
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError({name: [f"{name.capitalize()} must be numeric, got {value!r}"]}) from None
    else:
        raise ValidationError({name: [f"{name.capitalize()} must be numeric, got {type(value).__name__}"]})
    if not result.is_finite():
        raise ValidationError({name: [f"{name.capitalize()} must be finite, got {value!r}"]})
    return result


def _currency_code(value) -> str:
    code = str(value).upper()
    if not _CURRENCY_CODE.match(code):
        raise ValidationError({"currency": [f"Invalid currency code: {value}"]})
    return code


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class Money(BaseValueObject):
    """Monetary amount in minor units with currency.

    Use ``Money.of("10.50")`` for decimal amounts and ``Money.from_cents(1050)``
    for minor units. Instances are immutable; arithmetic returns new values.
    """

    cents = Integer(required=True)
    currency = String(max_length=3, default="USD")

    @invariant.post
    def currency_must_be_iso_code(self):
        if not self.currency or not _CURRENCY_CODE.match(self.currency):
            raise ValidationError({"currency": [f"Invalid currency code: {self.currency}"]})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def of(cls, amount, currency="USD"):
        """Build Money from an amount in major units, rounding half-up to the minor unit."""
        cents = _round_half_up(_to_decimal(amount) * MINOR_UNITS)
        return cls(cents=cents, currency=_currency_code(currency))

    @classmethod
    def from_cents(cls, cents, currency="USD"):
        if isinstance(cents, bool) or not isinstance(cents, int):
            raise ValidationError({"cents": ["Minor units must be an integer"]})
        return cls(cents=cents, currency=_currency_code(currency))

    @classmethod
    def zero(cls, currency="USD"):
        return cls.from_cents(0, currency=currency)

    # -------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------
    @property
    def amount(self) -> Decimal:
        """The exact amount in major units."""
        return Decimal(self.cents) / MINOR_UNITS

    def to_decimal(self) -> Decimal:
        return self.amount

    def to_float(self) -> float:
        return self.cents / MINOR_UNITS

    def __int__(self):
        return self.cents

    def is_zero(self) -> bool:
        return self.cents == 0

    def is_positive(self) -> bool:
        return self.cents > 0

    def is_negative(self) -> bool:
        return self.cents < 0

    # -------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------
    def add(self, other):
        self._ensure_same_currency(other)
        return self.__class__(cents=self.cents + other.cents, currency=self.currency)

    def subtract(self, other):
        self._ensure_same_currency(other)
        return self.__class__(cents=self.cents - other.cents, currency=self.currency)

    def multiply(self, factor):
        scaled = Decimal(self.cents) * _to_decimal(factor, "factor")
        return self.__class__(cents=_round_half_up(scaled), currency=self.currency)

    def divide(self, divisor):
        divisor = _to_decimal(divisor, "divisor")
        if divisor == 0:
            raise ValidationError({"divisor": ["Cannot divide money by zero"]})
        return self.__class__(cents=_round_half_up(Decimal(self.cents) / divisor), currency=self.currency)

    def convert(self, target_currency, rate):
        """Re-express this amount in ``target_currency`` at the given exchange rate.

        This is the only operation that produces a value in another currency,
        so no currency check is made.
        """
        scaled = Decimal(self.cents) * _to_decimal(rate, "rate")
        return self.__class__(cents=_round_half_up(scaled), currency=_currency_code(target_currency))

    def in_currency(self, currency):
        """The same number of minor units labelled with another currency."""
        return self.__class__(cents=self.cents, currency=_currency_code(currency))

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply
    __rmul__ = multiply
    __truediv__ = divide

    # -------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------
    def __eq__(self, other):
        if not isinstance(other, Money):
            return False
        return self.cents == other.cents and self.currency == other.currency

    def __hash__(self):
        return hash((self.cents, self.currency))

    def __lt__(self, other):
        self._ensure_same_currency(other)
        return self.cents < other.cents

    def __le__(self, other):
        self._ensure_same_currency(other)
        return self.cents <= other.cents

    def __gt__(self, other):
        self._ensure_same_currency(other)
        return self.cents > other.cents

    def __ge__(self, other):
        self._ensure_same_currency(other)
        return self.cents >= other.cents

    # -------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------
    @property
    def symbol(self) -> str:
        return CURRENCY_SYMBOLS.get(self.currency, self.currency)

    def format(self, symbol=True, separator=".", delimiter=","):
        """Render as ``<symbol><grouped integer>.<2-digit fraction>``.

        Negative amounts keep the sign after the symbol: ``$-12.34``.
        """
        sign = "-" if self.cents < 0 else ""
        units, fraction = divmod(abs(self.cents), MINOR_UNITS)
        grouped = f"{units:,}".replace(",", delimiter)
        formatted = f"{sign}{grouped}{separator}{fraction:02d}"
        return f"{self.symbol}{formatted}" if symbol else formatted

    def __str__(self):
        return self.format()

    def __repr__(self):
        return f"<Money {self.format()} ({self.cents} cents, {self.currency})>"

    def _ensure_same_currency(self, other):
        if not isinstance(other, Money):
            raise ValidationError({"amount": [f"Expected a Money object, got {type(other).__name__}"]})
        if other.currency != self.currency:
            raise CurrencyMismatch(self.currency, other.currency)


def ensure_money(value, name: str = "amount") -> None:
    """Reject anything that is not a Money value."""
    if not isinstance(value, Money):
        raise ValidationError({name: [f"{name.replace('_', ' ').capitalize()} must be a Money object"]})
