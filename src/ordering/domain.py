"""Ordering bounded context: cart, pricing and checkout.

Handles the cart-to-completed order lifecycle, the pricing strategies used to
compute order totals (tax and shipping), and the checkout flow that settles
payment through the payments gateway.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger
from shared.money import Money

# Configure logging for the application
configure_logging(log_file_prefix="ordering")

logger = get_logger(__name__)

# Domain Composition Root
ordering = Domain(name="ordering")

# Value objects shared with the payments context
ordering.register(Money)
