"""Order checkout: command and handler."""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.checkout.service import CheckoutService
from ordering.domain import ordering
from ordering.order.order import Order
from payments.gateway import get_gateway


@ordering.command(part_of="Order")
class CheckoutOrder:
    order_id = Identifier(required=True)
    shipping = Text(required=True)  # JSON: {name, address, city, state, zip, country}
    payment = Text(required=True)  # JSON: {card_number, expiry_month, expiry_year, cvv, cardholder_name}


@ordering.command_handler(part_of=Order)
class CheckoutOrderHandler:
    @handle(CheckoutOrder)
    def checkout_order(self, command):
        shipping = json.loads(command.shipping) if isinstance(command.shipping, str) else command.shipping
        payment = json.loads(command.payment) if isinstance(command.payment, str) else command.payment

        order = current_domain.repository_for(Order).get(command.order_id)
        service = CheckoutService(order, get_gateway())
        return service.process(shipping_params=shipping, payment_params=payment)
