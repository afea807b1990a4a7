"""In-process payment gateway adapters.

These adapters implement ``PaymentGatewayPort`` without any network call:

- ``PayPalCaptureGateway`` trusts the capture performed client-side with the
  PayPal JS SDK and settles using the capture id the storefront forwards.
- ``DummyGateway`` always settles. It is intended for tests and local
  development where deterministic behavior is useful.
"""

import logging
import uuid

from .domain import PaymentOutcome, PaymentRequest, SettlementConfirmation

logger = logging.getLogger(__name__)

NO_ACTIVE_ORDER = "No active order."


class PayPalCaptureGateway:
    """Validation-only PayPal adapter.

    Storefront flow: create and capture the PayPal order on the client,
    then add a payment with method ``paypal`` and metadata
    ``{paypalOrderId, paypalCaptureId, payerEmail?}``. The capture id is
    accepted as proof of settlement.
    """

    code = "paypal"

    def __init__(self, capture_mode: str = "immediate"):
        self.capture_mode = capture_mode

    async def settle(self, request: PaymentRequest) -> PaymentOutcome:
        """Settle using the client-supplied PayPal capture.

        Args:
            request: Payment request carrying the PayPal identifiers.

        Returns:
            PaymentOutcome: Settled with the capture id as transaction id,
            or Declined when the order or the identifiers are missing.
        """
        if request.order is None:
            return PaymentOutcome.declined(request.amount, NO_ACTIVE_ORDER)

        metadata = request.metadata or {}
        paypal_order_id = metadata.get("paypalOrderId")
        paypal_capture_id = metadata.get("paypalCaptureId")
        payer_email = metadata.get("payerEmail")

        if not paypal_order_id or not paypal_capture_id:
            return PaymentOutcome.declined(request.amount, "Missing paypalOrderId/paypalCaptureId")

        audit = {
            "processor": self.code,
            "paypal_order_id": paypal_order_id,
            "paypal_capture_id": paypal_capture_id,
            "capture_mode": self.capture_mode,
        }
        if payer_email:
            audit["payer_email"] = payer_email
        logger.info("PayPal capture accepted", extra={"order_code": request.order.code, "transaction_id": paypal_capture_id})
        return PaymentOutcome.settled(request.amount, str(paypal_capture_id), audit)

    async def confirm_settlement(self, outcome: PaymentOutcome) -> SettlementConfirmation:
        return SettlementConfirmation(success=True)


class DummyGateway:
    """Test gateway that settles every request with a random transaction id."""

    code = "dummy"

    async def settle(self, request: PaymentRequest) -> PaymentOutcome:
        tx = str(uuid.uuid4())
        return PaymentOutcome.settled(request.amount, tx, {"processor": self.code, "status": "settled"})

    async def confirm_settlement(self, outcome: PaymentOutcome) -> SettlementConfirmation:
        return SettlementConfirmation(success=True)
