"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations. The
MockPaymentGateway is the default for development and testing.
"""

from payments.gateway.mock_adapter import MockPaymentGateway
from payments.gateway.port import PaymentGateway, PaymentResult

__all__ = ["MockPaymentGateway", "PaymentGateway", "PaymentResult", "get_gateway", "reset_gateway", "set_gateway"]

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to MockPaymentGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = MockPaymentGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
