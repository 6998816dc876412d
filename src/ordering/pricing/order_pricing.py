"""Order pricing facade: subtotal, tax and shipping combined into a grand total.

The facade owns no pricing rules. It reads the order's cached subtotal and
delegates to the tax and shipping strategies it was given.
"""

from dataclasses import dataclass

from ordering.pricing.shipping import PricingContext, ShippingCalculator
from ordering.pricing.tax import TaxCalculator
from shared.money import Money


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Money
    tax: Money
    shipping_cost: Money
    grand_total: Money
    free_shipping: bool
    remaining_for_free_shipping: Money | None = None


class OrderPricing:
    def __init__(
        self,
        order,
        tax_calculator: TaxCalculator,
        shipping_calculator: ShippingCalculator,
        context: PricingContext | None = None,
    ) -> None:
        self.order = order
        self.tax_calculator = tax_calculator
        self.shipping_calculator = shipping_calculator
        self.context = context

    @property
    def subtotal(self) -> Money:
        return self.order.subtotal

    @property
    def tax(self) -> Money:
        return self.tax_calculator.calculate(self.subtotal, self.context)

    @property
    def shipping_cost(self) -> Money:
        return self.shipping_calculator.calculate(self.subtotal, self.context)

    @property
    def grand_total(self) -> Money:
        return self.subtotal + self.tax + self.shipping_cost

    @property
    def free_shipping(self) -> bool:
        return self.shipping_calculator.qualifies_for_free_shipping(self.subtotal, self.context)

    @property
    def remaining_for_free_shipping(self) -> Money | None:
        return self.shipping_calculator.remaining_for_free_shipping(self.subtotal, self.context)

    def breakdown(self) -> PriceBreakdown:
        """Compute every figure once from the same subtotal."""
        subtotal = self.subtotal
        tax = self.tax_calculator.calculate(subtotal, self.context)
        shipping_cost = self.shipping_calculator.calculate(subtotal, self.context)
        return PriceBreakdown(
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            grand_total=subtotal + tax + shipping_cost,
            free_shipping=self.shipping_calculator.qualifies_for_free_shipping(subtotal, self.context),
            remaining_for_free_shipping=self.shipping_calculator.remaining_for_free_shipping(subtotal, self.context),
        )
