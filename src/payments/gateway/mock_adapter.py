"""Mock payment gateway for development and testing.

This adapter simulates a card processor without any external calls. The
outcome of a charge is driven by the card number, following the same idea
as a processor's test mode:

    4111111111111111  approved
    4000000000000002  declined (insufficient funds)
    4000000000000127  gateway error
    anything else     approved, unless ``approve_unknown_cards`` is off
"""

from datetime import UTC, datetime
from uuid import uuid4

import structlog

from shared.money import Money
from payments.gateway.port import PaymentGateway, PaymentResult

logger = structlog.get_logger(__name__)

APPROVED_CARD = "4111111111111111"
DECLINED_CARD = "4000000000000002"
ERROR_CARD = "4000000000000127"

DECLINED_MESSAGE = "Card declined - insufficient funds"
ERROR_MESSAGE = "Payment gateway error - please try again"
UNKNOWN_CARD_MESSAGE = "Card not recognized"


class MockPaymentGateway(PaymentGateway):
    """Card-number driven fake gateway that records every call."""

    def __init__(self, approve_unknown_cards: bool = True) -> None:
        self.approve_unknown_cards = approve_unknown_cards
        self.calls: list[dict] = []

    def available(self) -> bool:
        return True

    def _charge(self, amount: Money, payment_details: dict, metadata: dict) -> PaymentResult:
        card_number = str(payment_details.get("card_number") or "")
        self.calls.append(
            {
                "method": "charge",
                "amount": amount,
                "card_last_four": card_number[-4:],
                "metadata": dict(metadata),
            }
        )

        if card_number == DECLINED_CARD:
            return PaymentResult(success=False, message=DECLINED_MESSAGE, metadata={"amount": amount})
        if card_number == ERROR_CARD:
            return PaymentResult(success=False, message=ERROR_MESSAGE, metadata={"amount": amount})
        if card_number != APPROVED_CARD:
            if not self.approve_unknown_cards:
                return PaymentResult(success=False, message=UNKNOWN_CARD_MESSAGE, metadata={"amount": amount})
            logger.warning("Approving unrecognized test card", card_last_four=card_number[-4:])

        return PaymentResult(
            success=True,
            transaction_id=self._generate_transaction_id(),
            message="Payment approved",
            metadata={
                "amount": amount,
                "card_last_four": card_number[-4:],
                "processed_at": datetime.now(UTC),
            },
        )

    def _refund(self, transaction_id: str, amount: Money) -> PaymentResult:
        self.calls.append(
            {
                "method": "refund",
                "transaction_id": transaction_id,
                "amount": amount,
            }
        )
        return PaymentResult(
            success=True,
            transaction_id=self._generate_transaction_id(),
            message="Refund processed",
            metadata={
                "original_transaction_id": transaction_id,
                "amount": amount,
                "processed_at": datetime.now(UTC),
            },
        )

    @staticmethod
    def _generate_transaction_id() -> str:
        return f"mock_{uuid4().hex[:20]}"
