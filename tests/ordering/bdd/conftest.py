"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from ordering.order.order import Order
from shared.money import Money
from payments.gateway import set_gateway
from payments.gateway.mock_adapter import MockPaymentGateway
from protean import current_domain
from pytest_bdd import given, parsers


@pytest.fixture()
def gateway():
    gateway = MockPaymentGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def checkout():
    """Container for the outcome of the checkout attempt."""
    return {"result": None, "error": None}


@given(parsers.cfparse('a cart for user "{user_id}"'), target_fixture="order")
def cart_for_user(user_id):
    return current_domain.repository_for(Order).current_cart_for(user_id)


@given(parsers.cfparse('the cart contains variant "{variant_id}" at {price} with quantity {quantity:d}'))
def cart_contains(order, variant_id, price, quantity):
    order.add_item(variant_id, Money.of(price), quantity=quantity)
    current_domain.repository_for(Order).add(order)
