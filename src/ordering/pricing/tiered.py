"""Tiered shipping: Standard, Express and Overnight service levels.

Tiers are picked by exact name; nothing here chooses a tier on the
customer's behalf except the explicit ``cheapest_tier`` / ``fastest_tier``
helpers.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from protean.exceptions import ValidationError

from ordering.pricing.shipping import PricingContext, cost_for, meets_threshold, remaining_for
from shared.money import Money, ensure_money

_SATURDAY = 5


def _parse_cutoff(cutoff: str | None) -> time | None:
    if cutoff is None:
        return None
    try:
        hour, minute = (int(part) for part in str(cutoff).split(":"))
        return time(hour=hour, minute=minute)
    except ValueError:
        raise ValidationError({"cutoff_time": [f"Cutoff time must be formatted as HH:MM, got {cutoff!r}"]}) from None


@dataclass(frozen=True)
class ShippingTier:
    """A named shipping service level.

    ``free_threshold`` of ``None`` means the tier is never free.
    ``cutoff_time`` is an ``"HH:MM"`` string; orders placed after it ship a day later.
    """

    name: str
    cost: Money
    delivery_days: int
    free_threshold: Money | None = None
    cutoff_time: str | None = None

    def __post_init__(self):
        if not self.name or not str(self.name).strip():
            raise ValidationError({"name": ["Tier name cannot be blank"]})
        ensure_money(self.cost, "cost")
        if self.free_threshold is not None:
            ensure_money(self.free_threshold, "free_threshold")
        if isinstance(self.delivery_days, bool) or not isinstance(self.delivery_days, int) or self.delivery_days < 0:
            raise ValidationError({"delivery_days": ["Delivery days must be a non-negative integer"]})
        _parse_cutoff(self.cutoff_time)

    @property
    def cutoff(self) -> time | None:
        return _parse_cutoff(self.cutoff_time)

    def qualifies_for_free_shipping(self, amount: Money) -> bool:
        return meets_threshold(amount, self.free_threshold)

    def calculate_cost(self, amount: Money) -> Money:
        return cost_for(amount, self.free_threshold, self.cost)


def default_tiers() -> list[ShippingTier]:
    return [
        ShippingTier(
            name="Standard Shipping",
            cost=Money.of("5.99"),
            free_threshold=Money.of("50.00"),
            delivery_days=5,
            cutoff_time="17:00",
        ),
        ShippingTier(
            name="Express Shipping",
            cost=Money.of("12.99"),
            free_threshold=Money.of("100.00"),
            delivery_days=2,
            cutoff_time="14:00",
        ),
        ShippingTier(
            name="Overnight Shipping",
            cost=Money.of("24.99"),
            free_threshold=None,
            delivery_days=1,
            cutoff_time="12:00",
        ),
    ]


class TieredShippingCalculator:
    """Prices shipping for the tier named in the pricing context."""

    def __init__(self, tiers: list[ShippingTier] | None = None):
        tiers = default_tiers() if tiers is None else list(tiers)
        if not tiers:
            raise ValidationError({"tiers": ["Must have at least one tier"]})
        if not all(isinstance(tier, ShippingTier) for tier in tiers):
            raise ValidationError({"tiers": ["All tiers must be ShippingTier instances"]})
        self.tiers = tiers

    def tier(self, tier_name: str) -> ShippingTier:
        tier = next((t for t in self.tiers if t.name == tier_name), None)
        if tier is None:
            raise ValidationError({"tier_name": [f"Tier '{tier_name}' not found"]})
        return tier

    def calculate(self, amount: Money, context: PricingContext | None = None) -> Money:
        ensure_money(amount)
        return self._tier_for(context).calculate_cost(amount)

    def qualifies_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> bool:
        ensure_money(amount)
        return self._tier_for(context).qualifies_for_free_shipping(amount)

    def remaining_for_free_shipping(self, amount: Money, context: PricingContext | None = None) -> Money | None:
        ensure_money(amount)
        return remaining_for(amount, self._tier_for(context).free_threshold)

    def available_tiers(self, amount: Money) -> list[dict]:
        """Every tier with its cost for ``amount``, in declaration order."""
        ensure_money(amount)
        return [
            {
                "name": tier.name,
                "cost": tier.calculate_cost(amount),
                "delivery_days": tier.delivery_days,
                "cutoff_time": tier.cutoff_time,
                "free_shipping": tier.qualifies_for_free_shipping(amount),
            }
            for tier in self.tiers
        ]

    def estimated_delivery_date(self, tier_name: str, order_time: datetime | None = None) -> date:
        """Order date plus the tier's delivery days, one more if past cutoff, rolled off weekends.

        Holidays are not taken into account.
        """
        tier = self.tier(tier_name)
        order_time = order_time or datetime.now()

        extra_days = 0
        cutoff = tier.cutoff
        if cutoff is not None and order_time.time() > cutoff:
            extra_days = 1

        delivery_date = order_time.date() + timedelta(days=tier.delivery_days + extra_days)
        while delivery_date.weekday() >= _SATURDAY:
            delivery_date += timedelta(days=1)
        return delivery_date

    def cheapest_tier(self, amount: Money) -> ShippingTier:
        ensure_money(amount)
        # min() keeps the first of equal costs, so ties go to declaration order
        return min(self.tiers, key=lambda tier: tier.calculate_cost(amount).cents)

    def fastest_tier(self) -> ShippingTier:
        return min(self.tiers, key=lambda tier: tier.delivery_days)

    def _tier_for(self, context: PricingContext | None) -> ShippingTier:
        if context is None or not context.tier_name:
            raise ValidationError({"tier_name": ["A shipping tier must be selected"]})
        return self.tier(context.tier_name)
