"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus


@ordering.repository(part_of=Order)
class OrderRepository:
    """Standard persistence plus the cart lookup used when a user starts shopping."""

    def find_cart(self, user_id) -> Order | None:
        """The user's open cart, if they have one."""
        carts = self._dao.query.filter(user_id=str(user_id), status=OrderStatus.CART.value).all().items
        return carts[0] if carts else None

    def current_cart_for(self, user_id, currency="USD") -> Order:
        """Return the user's open cart, creating and persisting one if needed."""
        cart = self.find_cart(user_id)
        if cart is None:
            cart = Order.create(user_id=user_id, currency=currency)
            self.add(cart)
        return cart

    def find_by_status(self, status: OrderStatus) -> list[Order]:
        return self._dao.query.filter(status=status.value).all().items
