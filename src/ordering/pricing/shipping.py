"""Shipping cost strategies.

Every strategy implements the same capability: ``calculate``,
``qualifies_for_free_shipping`` and ``remaining_for_free_shipping``, each
taking the order subtotal and an optional :class:`PricingContext`.

Free-shipping thresholds are compared on minor units, so a subtotal of
49.99 never rounds up into qualifying for a 50.00 threshold. Costs are
re-expressed in the currency of the amount being priced.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from protean.exceptions import ValidationError

from shared.money import Money, ensure_money

FREE_SHIPPING_THRESHOLD = "50.00"
STANDARD_SHIPPING_COST = "5.99"


@dataclass(frozen=True)
class PricingContext:
    """Evaluation parameters shared by all pricing strategies."""

    on: date | None = None
    tier_name: str | None = None

    @property
    def evaluation_date(self) -> date:
        return as_date(self.on) if self.on else date.today()


def as_date(value: date) -> date:
    """Strip the time part from datetimes so they compare against plain dates."""
    return value.date() if isinstance(value, datetime) else value


class ShippingCalculator(Protocol):
    """Anything that can price shipping for an order subtotal."""

    def calculate(self, amount: Money, context: PricingContext | None = None) -> Money: ...

    def qualifies_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> bool: ...

    def remaining_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> Money | None: ...


def meets_threshold(amount: Money, threshold: Money | None) -> bool:
    if threshold is None:
        return False
    return amount.cents >= threshold.cents


def cost_for(amount: Money, threshold: Money | None, cost: Money) -> Money:
    if meets_threshold(amount, threshold):
        return Money.zero(amount.currency)
    return cost.in_currency(amount.currency)


def remaining_for(amount: Money, threshold: Money | None) -> Money | None:
    if threshold is None or meets_threshold(amount, threshold):
        return None
    return Money.from_cents(threshold.cents - amount.cents, currency=amount.currency)


class StandardShippingCalculator:
    """Flat cost below a threshold, free at or above it."""

    def __init__(self, free_threshold: Money | None = None, standard_cost: Money | None = None):
        if free_threshold is None:
            free_threshold = Money.of(FREE_SHIPPING_THRESHOLD)
        if standard_cost is None:
            standard_cost = Money.of(STANDARD_SHIPPING_COST)
        ensure_money(free_threshold, "free_shipping_threshold")
        ensure_money(standard_cost, "standard_shipping_cost")
        if standard_cost.is_negative():
            raise ValidationError({"standard_cost": ["Standard shipping cost cannot be negative"]})

        self.free_threshold = free_threshold
        self.standard_cost = standard_cost

    def calculate(self, amount: Money, context: PricingContext | None = None) -> Money:  # noqa: ARG002
        ensure_money(amount)
        return cost_for(amount, self.free_threshold, self.standard_cost)

    def qualifies_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> bool:  # noqa: ARG002
        ensure_money(amount)
        return meets_threshold(amount, self.free_threshold)

    def remaining_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> Money | None:  # noqa: ARG002
        ensure_money(amount)
        return remaining_for(amount, self.free_threshold)

    def __repr__(self) -> str:
        return f"StandardShippingCalculator(free_threshold={self.free_threshold}, standard_cost={self.standard_cost})"


class PromotionalShippingCalculator:
    """A time-boxed promotion layered over a standard calculator.

    Between ``start_date`` and ``end_date`` (both inclusive) the promotional
    threshold and cost apply. Outside the window every call is delegated to
    the wrapped standard calculator.
    """

    def __init__(
        self,
        promotion_name: str,
        start_date: date,
        end_date: date,
        promotional_threshold: Money | None = None,
        promotional_cost: Money | None = None,
        standard: StandardShippingCalculator | None = None,
    ):
        if promotional_threshold is None:
            promotional_threshold = Money.zero()
        if promotional_cost is None:
            promotional_cost = Money.zero()

        if not promotion_name or not str(promotion_name).strip():
            raise ValidationError({"promotion_name": ["Promotion name cannot be blank"]})
        ensure_money(promotional_threshold, "promotional_threshold")
        ensure_money(promotional_cost, "promotional_cost")
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise ValidationError({"dates": ["Start and end dates are required"]})
        if as_date(start_date) > as_date(end_date):
            raise ValidationError({"start_date": ["Start date must be before end date"]})
        if promotional_cost.is_negative():
            raise ValidationError({"promotional_cost": ["Promotional shipping cost cannot be negative"]})

        self.promotion_name = promotion_name
        self.start_date = as_date(start_date)
        self.end_date = as_date(end_date)
        self.promotional_threshold = promotional_threshold
        self.promotional_cost = promotional_cost
        self.standard = standard or StandardShippingCalculator()

    def is_active(self, on: date | None = None) -> bool:
        on = as_date(on) if on else date.today()
        return self.start_date <= on <= self.end_date

    def calculate(self, amount: Money, context: PricingContext | None = None) -> Money:
        ensure_money(amount)
        if self._active_for(context):
            return cost_for(amount, self.promotional_threshold, self.promotional_cost)
        return self.standard.calculate(amount, context)

    def qualifies_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> bool:
        ensure_money(amount)
        if self._active_for(context):
            return meets_threshold(amount, self.promotional_threshold)
        return self.standard.qualifies_for_free_shipping(amount, context)

    def remaining_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> Money | None:
        ensure_money(amount)
        if self._active_for(context):
            return remaining_for(amount, self.promotional_threshold)
        return self.standard.remaining_for_free_shipping(amount, context)

    def shipping_discount(self, amount: Money, context: PricingContext | None = None) -> Money:
        """How much less the customer pays for shipping thanks to the promotion."""
        ensure_money(amount)
        if not self._active_for(context):
            return Money.zero(amount.currency)
        return self.standard.calculate(amount, context) - self.calculate(amount, context)

    def _active_for(self, context: PricingContext | None) -> bool:
        return self.is_active((context or PricingContext()).evaluation_date)

    def __repr__(self) -> str:
        return (
            f"PromotionalShippingCalculator(promotion_name={self.promotion_name!r}, "
            f"start_date={self.start_date}, end_date={self.end_date})"
        )
