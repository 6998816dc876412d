"""Order aggregate: a user's cart that becomes a completed order at checkout.

The Order is a standard CQRS aggregate (not event sourced). While it is in
the ``cart`` state line items can be added, re-quantified and removed; every
such change recomputes the cached ``total`` before the method returns.

State Machine:
    CART → PENDING → COMPLETED
    CART → COMPLETED          (direct checkout)
    CART/PENDING → CANCELLED

Amounts are stored as integer minor units in the order's currency.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.events import (
    CartOpened,
    ItemAdded,
    ItemQuantityUpdated,
    ItemRemoved,
    OrderCancelled,
    OrderCompleted,
    ShippingCaptured,
)
from shared.money import CurrencyMismatch, Money, ensure_money


class OrderStatus(Enum):
    CART = "cart"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.CART: {OrderStatus.PENDING, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.PENDING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States in which shipping and payment details must be on record
_SHIPPING_REQUIRED_STATES = {OrderStatus.PENDING, OrderStatus.COMPLETED}
_PAYMENT_REQUIRED_STATES = {OrderStatus.COMPLETED}

SHIPPING_FIELDS = (
    "shipping_name",
    "shipping_address",
    "shipping_city",
    "shipping_state",
    "shipping_zip",
    "shipping_country",
)


def _blank(value) -> bool:
    return value is None or not str(value).strip()


@ordering.entity(part_of="Order")
class OrderItem:
    """A variant in the cart with the unit price captured when it was added."""

    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=1)  # unit price snapshot, minor units
    added_at = DateTime()

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.CART.value)
    currency = String(max_length=3, default="USD")
    items = HasMany(OrderItem)
    total = Integer(default=0)  # cached subtotal, minor units
    shipping_name = Text()
    shipping_address = Text()
    shipping_city = Text()
    shipping_state = Text()
    shipping_zip = Text()
    shipping_country = Text()
    payment_method = String(max_length=50)
    payment_transaction_id = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_line_items(self):
        expected = sum(item.line_total for item in self.items)
        if (self.total or 0) != expected:
            raise ValidationError({"total": [f"Order total {self.total} does not match line items ({expected})"]})

    @invariant.post
    def shipping_details_required_after_cart(self):
        if OrderStatus(self.status) in _SHIPPING_REQUIRED_STATES and not self.shipping_address_complete():
            raise ValidationError({"shipping": ["Shipping details are required once an order leaves the cart"]})

    @invariant.post
    def payment_details_required_when_completed(self):
        if OrderStatus(self.status) in _PAYMENT_REQUIRED_STATES and (
            _blank(self.payment_method) or _blank(self.payment_transaction_id)
        ):
            raise ValidationError({"payment": ["Payment method and transaction id are required on completed orders"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, currency="USD"):
        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            status=OrderStatus.CART.value,
            currency=str(currency).upper(),
            total=0,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            CartOpened(
                order_id=str(order.id),
                user_id=str(user_id),
                currency=order.currency,
                opened_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> Money:
        return Money.from_cents(self.total or 0, currency=self.currency)

    def has_items(self) -> bool:
        return bool(self.items)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def recalculate_total(self) -> Money:
        """Recompute the cached total from the line items."""
        self.total = sum(item.line_total for item in self.items)
        return self.subtotal

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, variant_id, unit_price: Money, quantity=1):
        """Add a variant to the cart, or increase its quantity if already present.

        The unit price is captured on first add; later adds of the same variant
        keep the original snapshot.
        """
        self._assert_cart("Items can only be added to a cart")
        ensure_money(unit_price, "unit_price")
        if unit_price.currency != self.currency:
            raise CurrencyMismatch(self.currency, unit_price.currency)
        if not unit_price.is_positive():
            raise ValidationError({"unit_price": ["Unit price must be positive"]})
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = next((i for i in self.items if str(i.variant_id) == str(variant_id)), None)

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
                item = existing
            else:
                item = OrderItem(
                    variant_id=variant_id,
                    quantity=quantity,
                    price=unit_price.cents,
                    added_at=now,
                )
                self.add_items(item)
            self.recalculate_total()
            self.updated_at = now

        self.raise_(
            ItemAdded(
                order_id=str(self.id),
                item_id=str(item.id),
                variant_id=str(variant_id),
                quantity=quantity,
                unit_price=item.price,
                new_total=self.total,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity):
        self._assert_cart("Item quantities can only be updated in a cart")
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        item = self._find_item(item_id)

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = new_quantity
            self.recalculate_total()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            ItemQuantityUpdated(
                order_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                new_total=self.total,
            )
        )

    def remove_item(self, item_id):
        self._assert_cart("Items can only be removed from a cart")
        item = self._find_item(item_id)

        with atomic_change(self):
            self.remove_items(item)
            self.recalculate_total()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            ItemRemoved(
                order_id=str(self.id),
                item_id=str(item_id),
                new_total=self.total,
            )
        )

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    @property
    def shipping_details(self) -> dict:
        return {name: getattr(self, name) for name in SHIPPING_FIELDS}

    def shipping_address_complete(self) -> bool:
        return not any(_blank(getattr(self, name)) for name in SHIPPING_FIELDS)

    def capture_shipping(self, name, address, city, state, zip_code, country="US"):
        """Record where the order ships.

        Values are opaque text and only checked for presence. Either every
        field is assigned or, when one is missing, none are.
        """
        self._assert_cart("Shipping can only be captured while the order is a cart")
        details = {
            "shipping_name": name,
            "shipping_address": address,
            "shipping_city": city,
            "shipping_state": state,
            "shipping_zip": zip_code,
            "shipping_country": "US" if _blank(country) else country,
        }
        missing = [field for field, value in details.items() if _blank(value)]
        if missing:
            raise ValidationError({field: ["is required"] for field in missing})
        details = {field: str(value).strip() for field, value in details.items()}

        with atomic_change(self):
            for field, value in details.items():
                setattr(self, field, value)
            self.updated_at = datetime.now(UTC)

        self.raise_(
            ShippingCaptured(
                order_id=str(self.id),
                shipping_name=self.shipping_name,
                shipping_city=self.shipping_city,
                shipping_state=self.shipping_state,
                shipping_zip=self.shipping_zip,
                shipping_country=self.shipping_country,
            )
        )

    def complete_checkout(self, payment_method, transaction_id):
        """Finalize the order after the gateway confirmed payment."""
        self._assert_can_transition(OrderStatus.COMPLETED)
        now = datetime.now(UTC)

        with atomic_change(self):
            self.status = OrderStatus.COMPLETED.value
            self.payment_method = payment_method
            self.payment_transaction_id = transaction_id
            self.updated_at = now

        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                user_id=str(self.user_id),
                total=self.total,
                currency=self.currency,
                payment_method=payment_method,
                payment_transaction_id=transaction_id,
                completed_at=now,
            )
        )

    def revert_completion(self, previous_status, previous_payment_method=None, previous_transaction_id=None):
        """Undo an in-memory completion whose persistence failed."""
        with atomic_change(self):
            self.status = previous_status
            self.payment_method = previous_payment_method
            self.payment_transaction_id = previous_transaction_id

        self._events[:] = [event for event in self._events if not isinstance(event, OrderCompleted)]

    def cancel(self):
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_cart(self, message):
        if OrderStatus(self.status) != OrderStatus.CART:
            raise ValidationError({"status": [message]})

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in order"]})
        return item
