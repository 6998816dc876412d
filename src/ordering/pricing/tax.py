"""Tax calculation strategies.

Every strategy exposes ``calculate(amount, context=None) -> Money``. The
regional calculator composes a flat calculator for the arithmetic and adds
its own rate lookup and exemption rules in front of it.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Protocol

from protean.exceptions import ValidationError

from shared.money import Money, ensure_money

DEFAULT_RATE = Decimal("0.09")

STATE_TAX_RATES = {
    "AL": Decimal("0.04"),
    "AK": Decimal("0.00"),  # No state sales tax
    "AZ": Decimal("0.056"),
    "CA": Decimal("0.0725"),
    "CO": Decimal("0.029"),
    "FL": Decimal("0.06"),
    "GA": Decimal("0.04"),
    "IL": Decimal("0.0625"),
    "IN": Decimal("0.07"),
    "MA": Decimal("0.0625"),
    "MI": Decimal("0.06"),
    "MN": Decimal("0.06875"),
    "NY": Decimal("0.04"),
    "NC": Decimal("0.0475"),
    "OH": Decimal("0.0575"),
    "PA": Decimal("0.06"),
    "TX": Decimal("0.0625"),
    "VA": Decimal("0.053"),
    "WA": Decimal("0.065"),
}

COUNTRY_TAX_RATES = {
    "US": Decimal("0.09"),
    "CA": Decimal("0.05"),  # GST
    "GB": Decimal("0.20"),  # VAT
    "DE": Decimal("0.19"),  # VAT
    "FR": Decimal("0.20"),  # VAT
    "AU": Decimal("0.10"),  # GST
    "JP": Decimal("0.10"),  # Consumption tax
    "BR": Decimal("0.17"),
}

COUNTRY_TAX_NAMES = {
    "GB": "VAT",
    "DE": "VAT",
    "FR": "VAT",
    "CA": "GST",
    "AU": "GST",
    "JP": "Consumption Tax",
}

TAX_EXEMPT_STATES = frozenset({"AK"})


class RegionType(Enum):
    STATE = "state"
    COUNTRY = "country"


class TaxCalculator(Protocol):
    """Anything that can compute the tax owed on an amount."""

    def calculate(self, amount: Money, context=None) -> Money: ...


def _coerce_rate(rate, name: str = "rate") -> Decimal:
    if isinstance(rate, bool) or not isinstance(rate, (int, float, str, Decimal)):
        raise ValidationError({name: ["Tax rate must be a number between 0 and 1"]})
    try:
        value = Decimal(str(rate))
        in_range = 0 <= value <= 1
    except InvalidOperation:
        in_range = False
    if not in_range:
        raise ValidationError({name: ["Tax rate must be a number between 0 and 1"]})
    return value


class FlatTaxCalculator:
    """Applies a single rate to every amount."""

    def __init__(self, rate=DEFAULT_RATE) -> None:
        self.rate = _coerce_rate(rate)

    def calculate(self, amount: Money, context=None) -> Money:  # noqa: ARG002
        ensure_money(amount)
        return amount.multiply(self.rate)

    def calculate_total(self, amount: Money, context=None) -> Money:
        return amount + self.calculate(amount, context)

    @property
    def percentage(self) -> Decimal:
        return self.rate * 100

    def __repr__(self) -> str:
        return f"FlatTaxCalculator(rate={self.rate})"


class RegionalTaxCalculator:
    """Selects a rate by US state or by country, with exemptions.

    Unknown regions fall back to ``fallback_rate``. Exempt regions (states with
    no sales tax) short-circuit to zero before any rate is applied.
    """

    def __init__(self, region: str, region_type=RegionType.STATE, fallback_rate=DEFAULT_RATE) -> None:
        if not region or not str(region).strip():
            raise ValidationError({"region": ["Region code cannot be blank"]})
        try:
            self.region_type = RegionType(region_type.value if isinstance(region_type, RegionType) else region_type)
        except ValueError:
            raise ValidationError({"region_type": [f"Unknown region type: {region_type}"]}) from None

        self.region = str(region).strip().upper()
        self.fallback_rate = _coerce_rate(fallback_rate, "fallback_rate")
        self._flat = FlatTaxCalculator(rate=self._determine_rate())

    @property
    def rate(self) -> Decimal:
        return self._flat.rate

    @property
    def percentage(self) -> Decimal:
        return self._flat.percentage

    def calculate(self, amount: Money, context=None) -> Money:
        ensure_money(amount)
        if self.is_tax_exempt(amount):
            return Money.zero(amount.currency)
        return self._flat.calculate(amount, context)

    def calculate_total(self, amount: Money, context=None) -> Money:
        return amount + self.calculate(amount, context)

    def is_tax_exempt(self, amount: Money) -> bool:  # noqa: ARG002
        return self.region_type == RegionType.STATE and self.region in TAX_EXEMPT_STATES

    @property
    def tax_name(self) -> str:
        if self.region_type == RegionType.STATE:
            return f"{self.region} State Sales Tax"
        return COUNTRY_TAX_NAMES.get(self.region, "Sales Tax")

    def _determine_rate(self) -> Decimal:
        table = STATE_TAX_RATES if self.region_type == RegionType.STATE else COUNTRY_TAX_RATES
        return table.get(self.region, self.fallback_rate)

    def __repr__(self) -> str:
        return f"RegionalTaxCalculator(region={self.region!r}, region_type={self.region_type.value!r})"
