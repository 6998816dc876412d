"""Checkout service: capture shipping, settle payment, finalize the order.

Flow:
    VALIDATING         order has items, is still a cart, gateway is available
    SHIPPING_CAPTURED  shipping details assigned to the order and persisted
    SETTLING           grand total charged through the payment gateway
    COMPLETED          order marked completed with the gateway transaction id
    FAILED             gateway declined, or something unexpected went wrong

Precondition and shipping problems raise ``CheckoutError`` before anything
is charged. Once settlement starts, failures never escape as exceptions:
they come back as a failed ``CheckoutResult`` and the order keeps the status
and payment fields it had before the attempt.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.order.order import Order, OrderStatus
from ordering.pricing.defaults import default_shipping_calculator, default_tax_calculator
from ordering.pricing.order_pricing import OrderPricing
from ordering.pricing.shipping import PricingContext, ShippingCalculator
from ordering.pricing.tax import TaxCalculator
from payments.gateway.port import PaymentGateway, PaymentResult

logger = structlog.get_logger(__name__)

PAYMENT_METHOD = "credit_card"
SUCCESS_MESSAGE = "Order completed successfully"
DEFAULT_FAILURE_MESSAGE = "Payment failed"

_REQUIRED_GATEWAY_METHODS = ("charge", "refund", "available")


class CheckoutState(Enum):
    VALIDATING = "validating"
    SHIPPING_CAPTURED = "shipping_captured"
    SETTLING = "settling"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureKind(Enum):
    PAYMENT_REJECTED = "payment_rejected"
    UNEXPECTED = "unexpected"


class CheckoutError(ValidationError):
    """The order cannot be checked out as it stands."""

    def __init__(self, message: str):
        self.message = message
        super().__init__({"checkout": [message]})


@dataclass(frozen=True)
class CheckoutResult:
    success: bool
    order: Order
    message: str
    payment_result: PaymentResult | None = None
    failure_kind: FailureKind | None = None
    state: CheckoutState = CheckoutState.COMPLETED

    @property
    def failure(self) -> bool:
        return not self.success


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ValidationError) and isinstance(exc.messages, dict):
        return "; ".join(str(msg) for msgs in exc.messages.values() for msg in msgs)
    return str(exc)


class CheckoutService:
    """Runs one checkout attempt for one order."""

    def __init__(
        self,
        order: Order,
        payment_gateway: PaymentGateway,
        tax_calculator: TaxCalculator | None = None,
        shipping_calculator: ShippingCalculator | None = None,
        context: PricingContext | None = None,
    ) -> None:
        if order is None:
            raise ValueError("Order cannot be None")
        if payment_gateway is None:
            raise ValueError("Payment gateway cannot be None")
        missing = [name for name in _REQUIRED_GATEWAY_METHODS if not callable(getattr(payment_gateway, name, None))]
        if missing:
            raise TypeError(f"Payment gateway must implement PaymentGateway interface (missing: {', '.join(missing)})")

        self.order = order
        self.payment_gateway = payment_gateway
        self.pricing = OrderPricing(
            order,
            tax_calculator=tax_calculator or default_tax_calculator(),
            shipping_calculator=shipping_calculator or default_shipping_calculator(),
            context=context,
        )
        self.state = CheckoutState.VALIDATING

    def process(self, shipping_params: dict, payment_params: dict) -> CheckoutResult:
        with structlog.contextvars.bound_contextvars(order_id=str(self.order.id)):
            logger.info("Checkout started", items_count=self.order.item_count)
            self._validate_order()
            self._capture_shipping(shipping_params or {})

            previous = (self.order.status, self.order.payment_method, self.order.payment_transaction_id)
            try:
                self._repository().add(self.order)
                self._transition(CheckoutState.SHIPPING_CAPTURED)

                payment_result = self._settle(payment_params or {})
                if payment_result.success:
                    return self._complete(payment_result, previous)
                return self._reject(payment_result)
            except Exception as exc:
                self._restore(previous)
                logger.exception("Checkout failed unexpectedly", error=str(exc))
                return self._fail(_error_message(exc), FailureKind.UNEXPECTED)

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _validate_order(self) -> None:
        if not self.order.has_items():
            raise CheckoutError("Order must have items")
        if OrderStatus(self.order.status) != OrderStatus.CART:
            raise CheckoutError(f"Order is already {self.order.status}")
        if not self.payment_gateway.available():
            raise CheckoutError("Payment gateway is not available")

    def _capture_shipping(self, params: dict) -> None:
        try:
            self.order.capture_shipping(
                name=params.get("name"),
                address=params.get("address"),
                city=params.get("city"),
                state=params.get("state"),
                zip_code=params.get("zip"),
                country=params.get("country") or "US",
            )
        except ValidationError as exc:
            logger.info("Checkout rejected", reason="incomplete shipping", fields=sorted(exc.messages))
            raise CheckoutError("Incomplete shipping information") from exc

    def _settle(self, params: dict) -> PaymentResult:
        self._transition(CheckoutState.SETTLING)
        amount = self.pricing.grand_total
        logger.info("Charging payment", amount=str(amount), currency=amount.currency)
        return self.payment_gateway.charge(
            amount,
            payment_details={
                "card_number": params.get("card_number"),
                "expiry_month": params.get("expiry_month"),
                "expiry_year": params.get("expiry_year"),
                "cvv": params.get("cvv"),
                "cardholder_name": params.get("cardholder_name"),
            },
            metadata={
                "order_id": str(self.order.id),
                "user_id": str(self.order.user_id),
                "items_count": self.order.item_count,
            },
        )

    def _complete(self, payment_result: PaymentResult, previous) -> CheckoutResult:
        self.order.complete_checkout(PAYMENT_METHOD, payment_result.transaction_id)
        try:
            self._repository().add(self.order)
        except Exception:
            self._restore(previous)
            raise

        self._transition(CheckoutState.COMPLETED)
        logger.info("Checkout completed", transaction_id=payment_result.transaction_id)
        return CheckoutResult(
            success=True,
            order=self.order,
            message=SUCCESS_MESSAGE,
            payment_result=payment_result,
            state=self.state,
        )

    def _reject(self, payment_result: PaymentResult) -> CheckoutResult:
        message = payment_result.message or DEFAULT_FAILURE_MESSAGE
        logger.info("Payment rejected", reason=message)
        return self._fail(message, FailureKind.PAYMENT_REJECTED, payment_result)

    def _fail(
        self,
        message: str,
        kind: FailureKind,
        payment_result: PaymentResult | None = None,
    ) -> CheckoutResult:
        self._transition(CheckoutState.FAILED)
        return CheckoutResult(
            success=False,
            order=self.order,
            message=message,
            payment_result=payment_result,
            failure_kind=kind,
            state=self.state,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _restore(self, previous) -> None:
        status, payment_method, transaction_id = previous
        if (self.order.status, self.order.payment_method, self.order.payment_transaction_id) != previous:
            self.order.revert_completion(status, payment_method, transaction_id)

    def _transition(self, state: CheckoutState) -> None:
        logger.debug("Checkout state changed", previous=self.state.value, current=state.value)
        self.state = state

    @staticmethod
    def _repository():
        return current_domain.repository_for(Order)
