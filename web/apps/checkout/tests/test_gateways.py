"""Unit tests for the payment gateway adapters.

The Braintree adapter is exercised against ``httpx.MockTransport`` so the
number of network calls can be asserted; the in-process adapters need no
transport at all.
"""
import json

import httpx
import pytest

from apps.checkout.adapters import DummyGateway, PayPalCaptureGateway
from apps.checkout.domain import Order, OrderLine, PaymentRequest, PaymentState
from apps.checkout.errors import GatewayConfigurationError, UnknownPaymentMethod
from apps.checkout.models import PaymentMethod
from apps.checkout.http_adapters import (
    PRODUCTION_URL,
    SANDBOX_URL,
    BraintreeGateway,
    read_braintree_credentials,
)
from apps.checkout.providers import get_payment_gateway
from apps.checkout.schemas import BraintreeCredentials

ORDER = Order(
    id=1,
    code="ABC123",
    currency_code="EUR",
    total_with_tax=1999,
    state="ArrangingPayment",
    lines=(OrderLine("TEE-1", 1, 1666, 1999),),
)
CREDS = BraintreeCredentials(merchant_id="m", public_key="pub", private_key="priv")


class CountingTransport(httpx.AsyncBaseTransport):
    """Async fake transport that counts calls and replays a canned answer."""

    def __init__(self, response=None, exc=None):
        self.calls: list[httpx.Request] = []
        self.response = response
        self.exc = exc

    async def handle_async_request(self, request):
        self.calls.append(request)
        if self.exc is not None:
            raise self.exc
        return self.response


def _tx_response(status="SUBMITTED_FOR_SETTLEMENT", legacy_id="bt-tx-1"):
    return httpx.Response(
        200,
        json={
            "data": {
                "chargePaymentMethod": {
                    "transaction": {
                        "id": "dHJhbnNhY3Rpb25fYnQtdHgtMQ",
                        "legacyId": legacy_id,
                        "status": status,
                        "amount": {"value": "19.99", "currencyCode": "EUR"},
                        "paymentMethodSnapshot": {"__typename": "CreditCardDetails"},
                    }
                }
            }
        },
    )


# ---- Braintree ----

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "order, metadata, reason",
    [
        (None, {"nonce": "fake-valid-nonce"}, "No active order."),
        (ORDER, {}, "Missing Braintree payment nonce."),
        (ORDER, {"deviceData": "{}"}, "Missing Braintree payment nonce."),
    ],
)
async def test_braintree_declines_without_network_call(order, metadata, reason):
    transport = CountingTransport(response=_tx_response())
    gateway = BraintreeGateway(CREDS, transport=transport)
    out = await gateway.settle(PaymentRequest(order=order, amount=1999, metadata=metadata))
    assert out.state is PaymentState.DECLINED
    assert out.reason == reason
    assert transport.calls == []


@pytest.mark.asyncio
async def test_braintree_settles_and_propagates_transaction_id():
    transport = CountingTransport(response=_tx_response(legacy_id="bt-tx-42"))
    gateway = BraintreeGateway(CREDS, transport=transport)
    out = await gateway.settle(PaymentRequest(order=ORDER, amount=1500, metadata={"nonce": "n", "deviceData": "dd"}))

    assert out.state is PaymentState.SETTLED
    assert out.transaction_id == "bt-tx-42"
    assert out.amount == 1500
    assert out.metadata["instrument_type"] == "credit_card"
    assert out.metadata["status"] == "SUBMITTED_FOR_SETTLEMENT"
    assert out.metadata["currency"] == "EUR"
    assert len(transport.calls) == 1

    sent = transport.calls[0]
    assert str(sent.url) == SANDBOX_URL
    assert sent.headers["Braintree-Version"] == "2019-01-01"
    assert sent.headers["Authorization"].startswith("Basic ")
    variables = json.loads(sent.content)["variables"]["input"]
    assert variables["paymentMethodId"] == "n"
    # the order's tax-inclusive total wins over the requested amount
    assert variables["transaction"]["amount"] == "19.99"
    assert variables["transaction"]["orderId"] == "ABC123"
    assert variables["transaction"]["riskData"] == {"deviceData": "dd"}


@pytest.mark.asyncio
async def test_braintree_falls_back_to_requested_amount():
    transport = CountingTransport(response=_tx_response())
    order = Order(id=2, code="NOTOTAL", total_with_tax=None)
    out = await BraintreeGateway(CREDS, transport=transport).settle(
        PaymentRequest(order=order, amount=505, metadata={"nonce": "n"})
    )
    assert out.state is PaymentState.SETTLED
    assert json.loads(transport.calls[0].content)["variables"]["input"]["transaction"]["amount"] == "5.05"
    assert out.metadata["currency"] == "USD"


@pytest.mark.asyncio
async def test_braintree_processor_error_is_declined():
    body = {"errors": [{"message": "Card declined by issuer"}], "data": {"chargePaymentMethod": None}}
    transport = CountingTransport(response=httpx.Response(200, json=body))
    out = await BraintreeGateway(CREDS, transport=transport).settle(
        PaymentRequest(order=ORDER, amount=1999, metadata={"nonce": "n"})
    )
    assert out.state is PaymentState.DECLINED
    assert out.reason == "Card declined by issuer"
    assert out.transaction_id is None


@pytest.mark.asyncio
async def test_braintree_unsettled_status_is_declined():
    transport = CountingTransport(response=_tx_response(status="PROCESSOR_DECLINED"))
    out = await BraintreeGateway(CREDS, transport=transport).settle(
        PaymentRequest(order=ORDER, amount=1999, metadata={"nonce": "n"})
    )
    assert out.state is PaymentState.DECLINED
    assert "PROCESSOR_DECLINED" in out.reason


@pytest.mark.asyncio
async def test_braintree_server_error_is_error_outcome():
    transport = CountingTransport(response=httpx.Response(503, text="unavailable"))
    out = await BraintreeGateway(CREDS, transport=transport).settle(
        PaymentRequest(order=ORDER, amount=1999, metadata={"nonce": "n"})
    )
    assert out.state is PaymentState.ERROR
    assert len(transport.calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [httpx.ConnectError("boom"), httpx.ReadTimeout("slow")])
async def test_braintree_transport_errors_never_escape(exc, caplog):
    transport = CountingTransport(exc=exc)
    out = await BraintreeGateway(CREDS, transport=transport).settle(
        PaymentRequest(order=ORDER, amount=1999, metadata={"nonce": "n"})
    )
    assert out.state is PaymentState.DECLINED
    assert out.reason
    assert len(transport.calls) == 1
    assert any("Braintree request failed" in r.getMessage() for r in caplog.records)


def test_braintree_production_environment_selects_production_endpoint():
    creds = BraintreeCredentials(merchant_id="m", public_key="p", private_key="k", environment="Production")
    assert BraintreeGateway(creds).endpoint == PRODUCTION_URL


@pytest.mark.django_db
def test_braintree_missing_credentials_fail_fast(settings):
    settings.BRAINTREE_MERCHANT_ID = "m"
    settings.BRAINTREE_PUBLIC_KEY = ""
    settings.BRAINTREE_PRIVATE_KEY = "k"
    with pytest.raises(GatewayConfigurationError):
        read_braintree_credentials()
    with pytest.raises(GatewayConfigurationError):
        get_payment_gateway("braintree")


@pytest.mark.asyncio
async def test_braintree_confirm_settlement_is_noop():
    gateway = BraintreeGateway(CREDS, transport=CountingTransport())
    out = await gateway.settle(PaymentRequest(order=None, amount=1, metadata={}))
    assert (await gateway.confirm_settlement(out)).success is True


# ---- PayPal / dummy ----

@pytest.mark.asyncio
async def test_paypal_settles_with_capture_id():
    meta = {"paypalOrderId": "PO-1", "paypalCaptureId": "CAP-9", "payerEmail": "a@b.c"}
    out = await PayPalCaptureGateway().settle(PaymentRequest(order=ORDER, amount=1999, metadata=meta))
    assert out.state is PaymentState.SETTLED
    assert out.transaction_id == "CAP-9"
    assert out.metadata == {
        "processor": "paypal",
        "paypal_order_id": "PO-1",
        "paypal_capture_id": "CAP-9",
        "payer_email": "a@b.c",
        "capture_mode": "immediate",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("meta", [{}, {"paypalOrderId": "PO-1"}, {"paypalCaptureId": "CAP-9"}])
async def test_paypal_declines_without_identifiers(meta):
    out = await PayPalCaptureGateway().settle(PaymentRequest(order=ORDER, amount=1999, metadata=meta))
    assert out.state is PaymentState.DECLINED
    assert out.reason == "Missing paypalOrderId/paypalCaptureId"


@pytest.mark.asyncio
async def test_paypal_declines_without_order():
    meta = {"paypalOrderId": "PO-1", "paypalCaptureId": "CAP-9"}
    out = await PayPalCaptureGateway().settle(PaymentRequest(order=None, amount=1999, metadata=meta))
    assert out.state is PaymentState.DECLINED


@pytest.mark.asyncio
async def test_dummy_always_settles():
    gateway = DummyGateway()
    out = await gateway.settle(PaymentRequest(order=None, amount=10, metadata={}))
    assert out.state is PaymentState.SETTLED and out.transaction_id
    assert (await gateway.confirm_settlement(out)).success is True


# ---- Provider ----

@pytest.mark.django_db
def test_provider_rejects_disabled_method(settings):
    settings.PAYMENT_METHOD_HANDLERS = ["dummy"]
    assert isinstance(get_payment_gateway("dummy"), DummyGateway)
    with pytest.raises(UnknownPaymentMethod):
        get_payment_gateway("paypal")
    with pytest.raises(UnknownPaymentMethod):
        get_payment_gateway("stripe")


@pytest.mark.django_db
def test_provider_resolves_handler_through_payment_method_row():
    PaymentMethod.objects.create(code="card-test", name="Card (test)", handler="dummy")
    assert isinstance(get_payment_gateway("card-test"), DummyGateway)


@pytest.mark.django_db
def test_provider_rejects_disabled_payment_method_row():
    PaymentMethod.objects.create(code="paypal", name="PayPal", handler="paypal", enabled=False)
    with pytest.raises(UnknownPaymentMethod):
        get_payment_gateway("paypal")


@pytest.mark.django_db
def test_provider_rejects_row_with_disabled_handler(settings):
    settings.PAYMENT_METHOD_HANDLERS = ["dummy"]
    PaymentMethod.objects.create(code="wallet", name="Wallet", handler="paypal")
    with pytest.raises(UnknownPaymentMethod):
        get_payment_gateway("wallet")
