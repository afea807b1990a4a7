"""HTTP payment gateway adapters and shared outbound helpers.

This module implements the card processor integration over ``httpx``:

- Request correlation: propagates ``X-Request-ID`` from the ContextVar set by
    the gateway middleware (also used by the webhook dispatcher).
- One bounded request per settlement attempt. There is no retry: a charge
    must never be submitted twice for the same checkout.
- Every transport problem (connection error, timeout) is translated into a
    Declined outcome plus a logged diagnostic; nothing crosses the adapter
    boundary except configuration errors.
"""

import logging
from typing import Any, Mapping, Optional

import httpx
from django.conf import settings
from django.utils.module_loading import import_string
from pydantic import ValidationError

from .adapters import NO_ACTIVE_ORDER
from .domain import PaymentOutcome, PaymentRequest, SettlementConfirmation
from .errors import GatewayConfigurationError
from .money import to_major_units
from .schemas import BraintreeCredentials

REQUEST_ID_CTX = import_string("gateway.middleware.REQUEST_ID_CTX")

logger = logging.getLogger(__name__)


# ---------------- Helpers ---------------- #

def request_headers(extra: Optional[dict] = None) -> dict:
    """Build base headers including X-Request-ID and any extras.

    Reads the request id from the ContextVar populated by middleware and
    adds it as ``X-Request-ID`` when present. Then applies any extra headers
    provided by the caller.

    Args:
        extra: Optional dict of additional headers to include.

    Returns:
        dict: Final headers dictionary for the outgoing request.
    """
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


# ---------------- Braintree ---------------- #

SANDBOX_URL = "https://payments.sandbox.braintree-api.com/graphql"
PRODUCTION_URL = "https://payments.braintree-api.com/graphql"
BRAINTREE_VERSION = "2019-01-01"

CHARGE_MUTATION = """
mutation ChargePaymentMethod($input: ChargePaymentMethodInput!) {
  chargePaymentMethod(input: $input) {
    transaction {
      id
      legacyId
      status
      amount { value currencyCode }
      paymentMethodSnapshot { __typename }
    }
  }
}
"""

# Statuses meaning the sale was accepted and will settle without further action.
SETTLED_STATUSES = frozenset({"SUBMITTED_FOR_SETTLEMENT", "SETTLEMENT_PENDING", "SETTLING", "SETTLED"})

INSTRUMENT_TYPES = {
    "CreditCardDetails": "credit_card",
    "PayPalTransactionDetails": "paypal_account",
    "VenmoAccountDetails": "venmo_account",
    "ApplePayCardDetails": "apple_pay_card",
    "GooglePayCardDetails": "android_pay_card",
}


def read_braintree_credentials() -> BraintreeCredentials:
    """Read Braintree credentials from settings, failing closed.

    Raises:
        GatewayConfigurationError: When merchant id, public key or private
            key is missing.
    """
    try:
        return BraintreeCredentials(
            merchant_id=getattr(settings, "BRAINTREE_MERCHANT_ID", ""),
            public_key=getattr(settings, "BRAINTREE_PUBLIC_KEY", ""),
            private_key=getattr(settings, "BRAINTREE_PRIVATE_KEY", ""),
            environment=getattr(settings, "BRAINTREE_ENVIRONMENT", "Sandbox") or "Sandbox",
        )
    except ValidationError as e:
        raise GatewayConfigurationError(
            "Missing Braintree env vars (BRAINTREE_MERCHANT_ID/PUBLIC_KEY/PRIVATE_KEY)."
        ) from e


class BraintreeGateway:
    """Card/PayPal payments through the Braintree GraphQL API.

    The storefront tokenizes the payment method with the Braintree client SDK
    and adds a payment with metadata ``{nonce, deviceData?}``. The sale is
    submitted for settlement immediately, so ``confirm_settlement`` is a no-op.
    """

    code = "braintree"

    def __init__(
        self,
        credentials: BraintreeCredentials,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.endpoint = PRODUCTION_URL if credentials.is_production else SANDBOX_URL
        self.timeout = timeout or getattr(settings, "HTTP_TIMEOUT_SECS", 10.0)
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "BraintreeGateway":
        return cls(read_braintree_credentials(), transport=transport)

    async def settle(self, request: PaymentRequest) -> PaymentOutcome:
        """Charge the tokenized payment method for the order total.

        The amount sent is the order's tax-inclusive total when available
        (falling back to the requested amount) as a two-decimal string.

        Args:
            request: Payment request with ``nonce`` and optional ``deviceData``.

        Returns:
            PaymentOutcome: Settled with the Braintree transaction id, Declined
            on validation failures, processor declines and transport errors,
            Error when Braintree answers with a server error or an unreadable
            body.
        """
        amount = request.amount
        order = request.order
        if order is None:
            return PaymentOutcome.declined(amount, NO_ACTIVE_ORDER)

        metadata = request.metadata or {}
        nonce = metadata.get("nonce")
        device_data = metadata.get("deviceData")
        if not nonce:
            return PaymentOutcome.declined(amount, "Missing Braintree payment nonce.")

        currency = order.currency_code or "USD"
        order_total = order.total_with_tax if isinstance(order.total_with_tax, int) else amount
        decimal_amount = to_major_units(order_total)

        transaction: dict[str, Any] = {"amount": decimal_amount, "orderId": order.code}
        if device_data:
            transaction["riskData"] = {"deviceData": device_data}
        payload = {
            "query": CHARGE_MUTATION,
            "variables": {"input": {"paymentMethodId": nonce, "transaction": transaction}},
        }
        headers = request_headers({"Braintree-Version": BRAINTREE_VERSION})

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.credentials.public_key, self.credentials.private_key),
                transport=self._transport,
            ) as client:
                resp = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as e:
            message = str(e) or "Braintree error"
            logger.error("Braintree request failed: %s", message, extra={"order_code": order.code})
            return PaymentOutcome.declined(amount, message)

        if resp.status_code >= 500:
            logger.error("Braintree responded %s", resp.status_code, extra={"order_code": order.code})
            return PaymentOutcome.error(amount, f"Braintree responded {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            logger.error("Braintree returned a non-JSON body", extra={"order_code": order.code})
            return PaymentOutcome.error(amount, "Malformed Braintree response")

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors or resp.status_code >= 400:
            message = _first_error_message(errors) or f"Braintree responded {resp.status_code}"
            logger.error("Braintree sale failed: %s", message, extra={"order_code": order.code})
            return PaymentOutcome.declined(amount, message)

        tx = ((body.get("data") or {}).get("chargePaymentMethod") or {}).get("transaction")
        if not isinstance(tx, Mapping) or not (tx.get("legacyId") or tx.get("id")):
            logger.error("Braintree response carries no transaction", extra={"order_code": order.code})
            return PaymentOutcome.error(amount, "Malformed Braintree response")

        status = tx.get("status") or ""
        if status not in SETTLED_STATUSES:
            message = f"Braintree sale failed with status {status or 'UNKNOWN'}"
            logger.error(message, extra={"order_code": order.code})
            return PaymentOutcome.declined(amount, message)

        transaction_id = tx.get("legacyId") or tx["id"]
        typename = (tx.get("paymentMethodSnapshot") or {}).get("__typename", "")
        logger.info("Braintree sale succeeded: tx=%s, amount=%s", transaction_id, decimal_amount)
        return PaymentOutcome.settled(
            amount,
            transaction_id,
            {
                "processor": self.code,
                "transaction_id": transaction_id,
                "type": "sale",
                "status": status,
                "instrument_type": INSTRUMENT_TYPES.get(typename, typename or None),
                "currency": currency,
                "amount": decimal_amount,
            },
        )

    async def confirm_settlement(self, outcome: PaymentOutcome) -> SettlementConfirmation:
        return SettlementConfirmation(success=True)


def _first_error_message(errors: Any) -> Optional[str]:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, Mapping):
            return first.get("message")
    return None
