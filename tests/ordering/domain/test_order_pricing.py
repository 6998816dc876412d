"""Tests for the order pricing facade and environment-driven defaults."""

from datetime import date

import pytest
from ordering.order.order import Order
from ordering.pricing.defaults import default_currency, default_shipping_calculator, default_tax_calculator
from ordering.pricing.order_pricing import OrderPricing
from ordering.pricing.shipping import PricingContext, PromotionalShippingCalculator, StandardShippingCalculator
from ordering.pricing.tax import FlatTaxCalculator, RegionalTaxCalculator
from ordering.pricing.tiered import TieredShippingCalculator
from shared.money import Money
from protean.exceptions import ValidationError


def _order_with(*prices):
    order = Order.create(user_id="user-001")
    for index, price in enumerate(prices):
        order.add_item(f"var-{index:03d}", Money.of(price))
    return order


class TestOrderPricing:
    def test_grand_total_below_free_shipping(self):
        pricing = OrderPricing(_order_with("20.00"), FlatTaxCalculator(), StandardShippingCalculator())
        assert pricing.subtotal == Money.of("20.00")
        assert pricing.tax == Money.of("1.80")
        assert pricing.shipping_cost == Money.of("5.99")
        assert pricing.grand_total == Money.of("27.79")
        assert not pricing.free_shipping
        assert pricing.remaining_for_free_shipping == Money.of("30.00")

    def test_grand_total_with_free_shipping(self):
        pricing = OrderPricing(_order_with("30.00", "30.00"), FlatTaxCalculator(), StandardShippingCalculator())
        assert pricing.grand_total == Money.of("65.40")
        assert pricing.free_shipping
        assert pricing.remaining_for_free_shipping is None

    def test_grand_total_is_sum_of_parts(self):
        pricing = OrderPricing(_order_with("17.49", "3.27"), RegionalTaxCalculator("CA"), StandardShippingCalculator())
        assert pricing.grand_total == pricing.subtotal + pricing.tax + pricing.shipping_cost

    def test_empty_order(self):
        pricing = OrderPricing(Order.create(user_id="user-001"), FlatTaxCalculator(), StandardShippingCalculator())
        assert pricing.subtotal.is_zero()
        assert pricing.tax.is_zero()
        assert pricing.shipping_cost == Money.of("5.99")

    def test_context_reaches_shipping_strategy(self):
        promotion = PromotionalShippingCalculator(
            promotion_name="Holiday Shipping",
            start_date=date(2025, 12, 1),
            end_date=date(2025, 12, 31),
            promotional_threshold=Money.of("25.00"),
            promotional_cost=Money.of("2.99"),
        )
        order = _order_with("30.00")
        active = OrderPricing(order, FlatTaxCalculator(rate=0), promotion, PricingContext(on=date(2025, 12, 15)))
        inactive = OrderPricing(order, FlatTaxCalculator(rate=0), promotion, PricingContext(on=date(2026, 1, 15)))
        assert active.grand_total == Money.of("30.00")
        assert inactive.grand_total == Money.of("35.99")

    def test_tiered_shipping_selected_by_context(self):
        pricing = OrderPricing(
            _order_with("60.00"),
            FlatTaxCalculator(rate=0),
            TieredShippingCalculator(),
            PricingContext(tier_name="Express Shipping"),
        )
        assert pricing.shipping_cost == Money.of("12.99")
        assert pricing.remaining_for_free_shipping == Money.of("40.00")

    def test_breakdown(self):
        breakdown = OrderPricing(_order_with("20.00"), FlatTaxCalculator(), StandardShippingCalculator()).breakdown()
        assert breakdown.subtotal == Money.of("20.00")
        assert breakdown.tax == Money.of("1.80")
        assert breakdown.shipping_cost == Money.of("5.99")
        assert breakdown.grand_total == Money.of("27.79")
        assert breakdown.free_shipping is False

    def test_reflects_cart_changes(self):
        order = _order_with("20.00")
        pricing = OrderPricing(order, FlatTaxCalculator(), StandardShippingCalculator())
        order.add_item("var-999", Money.of("40.00"))
        assert pricing.shipping_cost.is_zero()


class TestPricingDefaults:
    def test_defaults_without_environment(self, monkeypatch):
        for name in (
            "ORDERING_CURRENCY",
            "ORDERING_TAX_RATE",
            "ORDERING_FREE_SHIPPING_THRESHOLD",
            "ORDERING_STANDARD_SHIPPING_COST",
        ):
            monkeypatch.delenv(name, raising=False)

        assert default_currency() == "USD"
        assert default_tax_calculator().calculate(Money.of("100.00")) == Money.of("9.00")
        shipping = default_shipping_calculator()
        assert shipping.free_threshold == Money.of("50.00")
        assert shipping.standard_cost == Money.of("5.99")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ORDERING_CURRENCY", "eur")
        monkeypatch.setenv("ORDERING_TAX_RATE", "0.2")
        monkeypatch.setenv("ORDERING_FREE_SHIPPING_THRESHOLD", "80")
        monkeypatch.setenv("ORDERING_STANDARD_SHIPPING_COST", "4.50")

        assert default_currency() == "EUR"
        assert default_tax_calculator().calculate(Money.of("10.00", "EUR")) == Money.of("2.00", "EUR")
        shipping = default_shipping_calculator()
        assert shipping.free_threshold == Money.of("80.00", "EUR")
        assert shipping.calculate(Money.of("79.99", "EUR")) == Money.of("4.50", "EUR")

    def test_invalid_tax_rate_in_environment_is_rejected(self, monkeypatch):
        monkeypatch.setenv("ORDERING_TAX_RATE", "1.5")
        with pytest.raises(ValidationError):
            default_tax_calculator()
