"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
Checkout depends only on this contract, so the mock adapter used in
development and tests can be swapped for a real processor without touching
any ordering code.

Amount validation lives here, in the public ``charge`` / ``refund`` methods,
and runs before an adapter's own logic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from protean.exceptions import ValidationError

from shared.money import Money


@dataclass(frozen=True)
class PaymentResult:
    """Result of a charge or refund attempt."""

    success: bool
    transaction_id: str | None = None
    message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def failure(self) -> bool:
        return not self.success

    @property
    def error_message(self) -> str | None:
        return self.message if self.failure else None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    def charge(self, amount: Money, payment_details: dict, metadata: dict | None = None) -> PaymentResult:
        """Charge ``amount`` to the payment method described by ``payment_details``."""
        self.validate_amount(amount)
        return self._charge(amount, payment_details or {}, metadata or {})

    def refund(self, transaction_id: str, amount: Money) -> PaymentResult:
        """Refund ``amount`` of a previous charge."""
        self.validate_amount(amount)
        return self._refund(transaction_id, amount)

    @abstractmethod
    def available(self) -> bool:
        """Whether the gateway is ready to process payments."""
        ...

    @abstractmethod
    def _charge(self, amount: Money, payment_details: dict, metadata: dict) -> PaymentResult: ...

    @abstractmethod
    def _refund(self, transaction_id: str, amount: Money) -> PaymentResult: ...

    @staticmethod
    def validate_amount(amount: Money) -> None:
        if not isinstance(amount, Money):
            raise ValidationError({"amount": ["Amount must be a Money object"]})
        if not amount.is_positive():
            raise ValidationError({"amount": ["Amount must be positive"]})
