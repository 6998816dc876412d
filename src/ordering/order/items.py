"""Cart management: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.pricing.defaults import default_currency
from shared.money import Money


@ordering.command(part_of="Order")
class OpenCart:
    user_id = Identifier(required=True)
    currency = String(max_length=3)


@ordering.command(part_of="Order")
class AddItem:
    order_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    unit_price = Integer(required=True, min_value=1)  # minor units
    quantity = Integer(default=1, min_value=1)


@ordering.command(part_of="Order")
class UpdateItemQuantity:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Order")
class RemoveItem:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        repo = current_domain.repository_for(Order)
        cart = repo.current_cart_for(command.user_id, currency=command.currency or default_currency())
        return str(cart.id)

    @handle(AddItem)
    def add_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        item = order.add_item(
            variant_id=command.variant_id,
            unit_price=Money.from_cents(command.unit_price, currency=order.currency),
            quantity=command.quantity or 1,
        )
        repo.add(order)
        return str(item.id)

    @handle(UpdateItemQuantity)
    def update_item_quantity(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_item_quantity(item_id=command.item_id, new_quantity=command.quantity)
        repo.add(order)

    @handle(RemoveItem)
    def remove_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.remove_item(item_id=command.item_id)
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel()
        repo.add(order)
