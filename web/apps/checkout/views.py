"""HTTP views for the checkout app.

Views are kept small: they validate requests (via Pydantic), snapshot the
order, delegate to a gateway adapter or the fulfillment handler, persist
the result through ``OrderRepository`` and map outcomes to HTTP statuses.

- ``POST /api/checkout/orders/<code>/payments/`` settles a payment with the
  requested method. A Settled payment moves the order to ``PaymentSettled``,
  which in turn triggers the automation webhook.
- ``POST /api/checkout/orders/<code>/fulfillments/`` is called back by the
  automation system with the shared secret and creates one fulfillment.
"""

import hmac
import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .adapters import NO_ACTIVE_ORDER
from .domain import OrderState, PaymentRequest, PaymentState
from .errors import GatewayConfigurationError, UnknownPaymentMethod
from .fulfillment import AutomationFulfillmentHandler
from .providers import get_payment_gateway
from .repository import OrderRepository, to_line, to_order
from .schemas import FulfillmentIn, PaymentIn

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Automation-Secret"


class CheckoutPingView(APIView):
    """Simple health-check endpoint for the checkout module."""

    def get(self, request):
        return Response({"ok": True})


class OrderPaymentsView(APIView):
    """Add a payment to an order through a gateway adapter."""

    def post(self, request, code: str):
        """Settle a payment for the order ``code``.

        Args:
            request (Request): DRF request with ``{method, amount?, metadata}``.
            code: Order code.

        Returns:
            Response: One of the following responses.
            - 201 with the settled payment.
            - 400 for validation errors or unknown payment methods.
            - 402 with the decline reason; unknown orders are declined
              without calling the gateway.
            - 502 when the processor answered with an error or did not
              confirm the settlement.
            - 503 with {detail: "GATEWAY_MISCONFIGURED"} when credentials are
              missing.
        """
        try:
            dto = PaymentIn.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            gateway = get_payment_gateway(dto.method)
        except UnknownPaymentMethod:
            return Response({"detail": "UNKNOWN_PAYMENT_METHOD"}, status=status.HTTP_400_BAD_REQUEST)
        except GatewayConfigurationError:
            logger.exception("Payment gateway %s is misconfigured", dto.method)
            return Response({"detail": "GATEWAY_MISCONFIGURED"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        repo = OrderRepository()
        order = repo.get_by_code(code)
        if order is None:
            return Response(
                {"state": PaymentState.DECLINED.value, "detail": NO_ACTIVE_ORDER},
                status=status.HTTP_402_PAYMENT_REQUIRED,
            )
        amount = dto.amount if dto.amount is not None else (order.total_with_tax or 0)

        payment_request = PaymentRequest(order=to_order(order), amount=amount, metadata=dto.metadata)
        outcome = async_to_sync(gateway.settle)(payment_request)
        repo.record_payment(order, dto.method, outcome)

        if outcome.is_settled:
            confirmation = async_to_sync(gateway.confirm_settlement)(outcome)
            if not confirmation.success:
                logger.error("Settlement of order %s not confirmed: %s", order.code, confirmation.reason)
                body = {"state": PaymentState.ERROR.value, "detail": confirmation.reason or "SETTLEMENT_NOT_CONFIRMED"}
                return Response(body, status=status.HTTP_502_BAD_GATEWAY)
            repo.transition(order, OrderState.PAYMENT_SETTLED.value)
            body = {
                "state": outcome.state.value,
                "amount": outcome.amount,
                "transactionId": outcome.transaction_id,
                "metadata": dict(outcome.metadata),
            }
            return Response(body, status=status.HTTP_201_CREATED)

        body = {"state": outcome.state.value, "detail": outcome.reason}
        http_status = status.HTTP_402_PAYMENT_REQUIRED if outcome.state is PaymentState.DECLINED else status.HTTP_502_BAD_GATEWAY
        return Response(body, status=http_status)


class OrderFulfillmentsView(APIView):
    """Fulfillment intake for the automation system."""

    handler = AutomationFulfillmentHandler()

    def _authorized(self, request) -> bool:
        provided = request.headers.get(SECRET_HEADER) or request.query_params.get("secret") or ""
        return hmac.compare_digest(provided.encode(), settings.AUTOMATION_SECRET_KEY.encode())

    def post(self, request, code: str):
        if not self._authorized(request):
            return Response({"detail": "FORBIDDEN"}, status=status.HTTP_403_FORBIDDEN)

        try:
            dto = FulfillmentIn.model_validate(request.data or {})
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        repo = OrderRepository()
        order = repo.get_by_code(code)
        if order is None:
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)

        lines = order.lines.all()
        if dto.lines is not None:
            lines = lines.filter(id__in=dto.lines)
        lines = list(lines)

        result = self.handler.create_fulfillment([to_order(order)], [to_line(line) for line in lines], dto)
        repo.record_fulfillment(order, self.handler.code, result, lines)
        logger.info("Fulfillment created for order %s", order.code, extra={"method": result.method})
        return Response(result.as_payload(), status=status.HTTP_201_CREATED)
