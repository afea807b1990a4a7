# Shared fixtures for the storefront tests (web/ is on sys.path via pytest's pythonpath)
import httpx
import pytest
from django.apps import apps

from apps.checkout.events import order_state_transition
from apps.checkout.models import Channel, OrderLineModel, OrderModel
from apps.checkout.schemas import WebhookOptions
from apps.checkout.webhooks import OrderWebhookDispatcher


@pytest.fixture(autouse=True)
def checkout_settings(settings, tmp_path):
    settings.PAYMENT_METHOD_HANDLERS = ["dummy", "paypal", "braintree"]
    settings.AUTOMATION_BASE_URL = "http://automation.test"
    settings.AUTOMATION_SECRET_KEY = "S"
    settings.STATIC_ROOT_DIR = tmp_path / "static"
    # transitions are announced inline so assertions see the webhook request
    settings.ORDER_EVENTS_IN_BACKGROUND = False
    return settings


@pytest.fixture(autouse=True)
def no_live_webhook():
    """Detach the app's webhook dispatcher so tests never hit the network."""
    dispatcher = apps.get_app_config("checkout").dispatcher
    if dispatcher is not None:
        dispatcher.unsubscribe(order_state_transition)
    yield
    if dispatcher is not None:
        dispatcher.subscribe(order_state_transition)


@pytest.fixture
def automation_endpoint():
    """Fake automation system: records requests, answers with ``status``."""

    class Endpoint:
        status = 202

        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.transport = httpx.MockTransport(self._handle)

        def _handle(self, request):
            self.requests.append(request)
            return httpx.Response(self.status, json={"accepted": self.status < 300})

    return Endpoint()


@pytest.fixture
def subscribed_dispatcher(automation_endpoint):
    options = WebhookOptions(automation_base_url="http://automation.test", automation_secret_key="S")
    dispatcher = OrderWebhookDispatcher(options, transport=automation_endpoint.transport)
    dispatcher.subscribe(order_state_transition)
    yield dispatcher
    dispatcher.unsubscribe(order_state_transition)


@pytest.fixture
def make_order(db):
    """Create an order row with lines given as (sku, qty, unit_price, unit_price_with_tax)."""

    def _make(code="ABC123", lines=(("TEE-1", 1, 2500, 3000),), total_with_tax=None, state="ArrangingPayment"):
        channel, _ = Channel.objects.get_or_create(code="default-channel")
        if total_with_tax is None:
            total_with_tax = sum(q * pwt for _, q, _, pwt in lines)
        order = OrderModel.objects.create(
            code=code, channel=channel, state=state, currency_code="USD", total_with_tax=total_with_tax
        )
        for sku, qty, price, price_with_tax in lines:
            OrderLineModel.objects.create(
                order=order, sku=sku, quantity=qty, unit_price=price, unit_price_with_tax=price_with_tax
            )
        return order

    return _make
