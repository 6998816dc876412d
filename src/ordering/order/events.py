"""Domain events for the Order aggregate.

Events are immutable facts raised alongside each state change and dispatched
when the aggregate is persisted.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class CartOpened:
    """A new cart was opened for a user."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    currency = String(max_length=3, required=True)
    opened_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ItemAdded:
    """A variant was added to the cart, or its quantity increased."""

    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Integer(required=True)  # minor units
    new_total = Integer(required=True)  # minor units


@ordering.event(part_of="Order")
class ItemQuantityUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    new_total = Integer(required=True)


@ordering.event(part_of="Order")
class ItemRemoved:
    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_total = Integer(required=True)


@ordering.event(part_of="Order")
class ShippingCaptured:
    """Shipping details were recorded on the order during checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipping_name = Text(required=True)
    shipping_city = Text(required=True)
    shipping_state = Text(required=True)
    shipping_zip = Text(required=True)
    shipping_country = Text(required=True)


@ordering.event(part_of="Order")
class OrderCompleted:
    """Payment settled and the order was finalized."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    total = Integer(required=True)  # subtotal, minor units
    currency = String(max_length=3, required=True)
    payment_method = String(required=True)
    payment_transaction_id = String(required=True)
    completed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)
