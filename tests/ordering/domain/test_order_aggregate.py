"""Tests for the Order aggregate: cart items, totals, shipping and status changes."""

import pytest
from ordering.order.events import (
    CartOpened,
    ItemAdded,
    ItemQuantityUpdated,
    ItemRemoved,
    OrderCancelled,
    OrderCompleted,
    ShippingCaptured,
)
from ordering.order.order import Order, OrderStatus
from shared.money import CurrencyMismatch, Money
from protean.exceptions import ValidationError

SHIPPING = {
    "name": "Ada Lovelace",
    "address": "12 Analytical Way",
    "city": "Portland",
    "state": "OR",
    "zip_code": "97201",
}


def _cart(**overrides):
    defaults = {"user_id": "user-001"}
    defaults.update(overrides)
    order = Order.create(**defaults)
    order._events.clear()
    return order


class TestOrderCreation:
    def test_starts_as_empty_cart(self):
        order = Order.create(user_id="user-001")
        assert order.status == OrderStatus.CART.value
        assert order.total == 0
        assert order.subtotal == Money.zero()
        assert not order.has_items()

    def test_raises_cart_opened(self):
        order = Order.create(user_id="user-001", currency="eur")
        assert order.currency == "EUR"
        assert len(order._events) == 1
        assert isinstance(order._events[0], CartOpened)
        assert order._events[0].currency == "EUR"


class TestAddItem:
    def test_add_item_updates_total(self):
        order = _cart()
        order.add_item("var-001", Money.of("12.50"), quantity=2)
        assert order.item_count == 1
        assert order.total == 2500
        assert order.subtotal == Money.of("25.00")

    def test_same_variant_merges_quantity(self):
        order = _cart()
        order.add_item("var-001", Money.of("10.00"))
        order.add_item("var-001", Money.of("10.00"), quantity=3)
        assert order.item_count == 1
        assert order.items[0].quantity == 4
        assert order.subtotal == Money.of("40.00")

    def test_price_snapshot_is_kept_on_merge(self):
        order = _cart()
        order.add_item("var-001", Money.of("10.00"))
        order.add_item("var-001", Money.of("12.00"))
        assert order.items[0].price == 1000
        assert order.subtotal == Money.of("20.00")

    def test_total_is_sum_of_line_totals(self):
        order = _cart()
        order.add_item("var-001", Money.of("4.99"), quantity=3)
        order.add_item("var-002", Money.of("18.00"))
        assert order.total == sum(item.line_total for item in order.items) == 3297

    def test_raises_item_added(self):
        order = _cart()
        order.add_item("var-001", Money.of("9.99"), quantity=2)
        event = order._events[-1]
        assert isinstance(event, ItemAdded)
        assert event.unit_price == 999
        assert event.new_total == 1998

    def test_currency_mismatch_rejected(self):
        order = _cart()
        with pytest.raises(CurrencyMismatch):
            order.add_item("var-001", Money.of("9.99", "EUR"))

    def test_non_money_price_rejected(self):
        with pytest.raises(ValidationError):
            _cart().add_item("var-001", 9.99)

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError):
            _cart().add_item("var-001", Money.zero())

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _cart().add_item("var-001", Money.of("1.00"), quantity=0)


class TestUpdateAndRemoveItems:
    def test_update_quantity(self):
        order = _cart()
        item = order.add_item("var-001", Money.of("5.00"))
        order.update_item_quantity(item.id, 4)
        assert order.subtotal == Money.of("20.00")
        assert isinstance(order._events[-1], ItemQuantityUpdated)
        assert order._events[-1].previous_quantity == 1

    def test_update_to_zero_rejected(self):
        order = _cart()
        item = order.add_item("var-001", Money.of("5.00"))
        with pytest.raises(ValidationError):
            order.update_item_quantity(item.id, 0)

    def test_remove_item(self):
        order = _cart()
        first = order.add_item("var-001", Money.of("5.00"))
        order.add_item("var-002", Money.of("7.00"))
        order.remove_item(first.id)
        assert order.item_count == 1
        assert order.subtotal == Money.of("7.00")
        assert isinstance(order._events[-1], ItemRemoved)

    def test_removing_last_item_empties_cart(self):
        order = _cart()
        item = order.add_item("var-001", Money.of("5.00"))
        order.remove_item(item.id)
        assert not order.has_items()
        assert order.total == 0

    def test_unknown_item_rejected(self):
        with pytest.raises(ValidationError):
            _cart().remove_item("missing")

    def test_recalculate_total_is_idempotent(self):
        order = _cart()
        order.add_item("var-001", Money.of("3.33"), quantity=3)
        first = order.recalculate_total()
        second = order.recalculate_total()
        assert first == second == Money.of("9.99")


class TestShippingCapture:
    def test_capture_shipping(self):
        order = _cart()
        order.capture_shipping(**SHIPPING)
        assert order.shipping_address_complete()
        assert order.shipping_country == "US"
        assert isinstance(order._events[-1], ShippingCaptured)

    def test_shipping_details(self):
        order = _cart()
        order.capture_shipping(**SHIPPING, country="CA")
        assert order.shipping_details["shipping_city"] == "Portland"
        assert order.shipping_details["shipping_country"] == "CA"

    def test_incomplete_shipping_assigns_nothing(self):
        order = _cart()
        with pytest.raises(ValidationError) as exc:
            order.capture_shipping(**{**SHIPPING, "city": " "})
        assert "shipping_city" in exc.value.messages
        assert order.shipping_name is None
        assert not order.shipping_address_complete()

    def test_values_are_opaque_text(self):
        order = _cart()
        order.capture_shipping(
            **{**SHIPPING, "zip_code": "97201-1234 Suite 400 Bldg C", "state": "State of " + "Oregon " * 30},
            country="United Kingdom of Great Britain and Northern Ireland " * 3,
        )
        assert order.shipping_zip == "97201-1234 Suite 400 Bldg C"
        assert order.shipping_address_complete()

    def test_numeric_values_are_stored_as_text(self):
        order = _cart()
        order.capture_shipping(**{**SHIPPING, "zip_code": 97201})
        assert order.shipping_zip == "97201"
        assert order._events[-1].shipping_zip == "97201"

    def test_values_are_trimmed(self):
        order = _cart()
        order.capture_shipping(**{**SHIPPING, "name": "  Ada Lovelace "})
        assert order.shipping_name == "Ada Lovelace"

    def test_one_missing_field_leaves_every_field_unassigned(self):
        order = _cart()
        with pytest.raises(ValidationError):
            order.capture_shipping(**{**SHIPPING, "zip_code": None})
        assert all(value is None for value in order.shipping_details.values())


class TestStatusTransitions:
    def test_complete_checkout(self):
        order = _cart()
        order.add_item("var-001", Money.of("20.00"))
        order.capture_shipping(**SHIPPING)
        order.complete_checkout("credit_card", "mock_abc")
        assert order.status == OrderStatus.COMPLETED.value
        assert order.payment_transaction_id == "mock_abc"
        assert isinstance(order._events[-1], OrderCompleted)

    def test_completion_requires_shipping(self):
        order = _cart()
        order.add_item("var-001", Money.of("20.00"))
        with pytest.raises(ValidationError):
            order.complete_checkout("credit_card", "mock_abc")

    def test_completion_requires_transaction_id(self):
        order = _cart()
        order.add_item("var-001", Money.of("20.00"))
        order.capture_shipping(**SHIPPING)
        with pytest.raises(ValidationError):
            order.complete_checkout("credit_card", None)

    def test_completed_order_is_frozen(self):
        order = _cart()
        order.add_item("var-001", Money.of("20.00"))
        order.capture_shipping(**SHIPPING)
        order.complete_checkout("credit_card", "mock_abc")
        with pytest.raises(ValidationError):
            order.add_item("var-002", Money.of("1.00"))
        with pytest.raises(ValidationError):
            order.cancel()

    def test_revert_completion(self):
        order = _cart()
        order.add_item("var-001", Money.of("20.00"))
        order.capture_shipping(**SHIPPING)
        order.complete_checkout("credit_card", "mock_abc")
        order.revert_completion(OrderStatus.CART.value)
        assert order.status == OrderStatus.CART.value
        assert order.payment_transaction_id is None
        assert not any(isinstance(event, OrderCompleted) for event in order._events)

    def test_cancel_cart(self):
        order = _cart()
        order.cancel()
        assert order.status == OrderStatus.CANCELLED.value
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cancelled_order_cannot_be_cancelled_again(self):
        order = _cart()
        order.cancel()
        with pytest.raises(ValidationError):
            order.cancel()
