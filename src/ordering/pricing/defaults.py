"""Default pricing strategies, configurable through environment variables.

ORDERING_CURRENCY                 default order currency (USD)
ORDERING_TAX_RATE                 flat tax rate between 0 and 1 (0.09)
ORDERING_FREE_SHIPPING_THRESHOLD  subtotal for free standard shipping (50.00)
ORDERING_STANDARD_SHIPPING_COST   standard shipping cost (5.99)
"""

import os

from ordering.pricing.shipping import FREE_SHIPPING_THRESHOLD, STANDARD_SHIPPING_COST, StandardShippingCalculator
from ordering.pricing.tax import DEFAULT_RATE, FlatTaxCalculator
from shared.money import Money


def default_currency() -> str:
    return os.getenv("ORDERING_CURRENCY", "USD").upper()


def default_tax_calculator() -> FlatTaxCalculator:
    return FlatTaxCalculator(rate=os.getenv("ORDERING_TAX_RATE", str(DEFAULT_RATE)))


def default_shipping_calculator() -> StandardShippingCalculator:
    currency = default_currency()
    return StandardShippingCalculator(
        free_threshold=Money.of(os.getenv("ORDERING_FREE_SHIPPING_THRESHOLD", FREE_SHIPPING_THRESHOLD), currency),
        standard_cost=Money.of(os.getenv("ORDERING_STANDARD_SHIPPING_COST", STANDARD_SHIPPING_COST), currency),
    )
