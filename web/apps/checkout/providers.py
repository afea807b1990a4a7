"""Service provider helpers for wiring checkout components.

``get_payment_gateway`` resolves a payment method code to its handler through
the ``PaymentMethod`` table (a code without a row is its own handler) and
builds the adapter from Django settings. Only the handlers listed in
``settings.PAYMENT_METHOD_HANDLERS`` are enabled. ``get_webhook_dispatcher``
builds the order webhook dispatcher from its explicit options.
"""

from django.conf import settings

from .adapters import DummyGateway, PayPalCaptureGateway
from .domain import PaymentGatewayPort
from .errors import UnknownPaymentMethod
from .http_adapters import BraintreeGateway
from .models import PaymentMethod
from .schemas import WebhookOptions
from .webhooks import OrderWebhookDispatcher


def _build_braintree() -> PaymentGatewayPort:
    return BraintreeGateway.from_settings()


def _build_paypal() -> PaymentGatewayPort:
    return PayPalCaptureGateway(capture_mode=getattr(settings, "PAYPAL_CAPTURE_MODE", "immediate"))


def _build_dummy() -> PaymentGatewayPort:
    return DummyGateway()


GATEWAY_FACTORIES = {
    "braintree": _build_braintree,
    "paypal": _build_paypal,
    "dummy": _build_dummy,
}


def get_payment_gateway(code: str) -> PaymentGatewayPort:
    """Return a configured gateway adapter for a payment method code.

    Args:
        code: Payment method code chosen by the storefront.

    Returns:
        PaymentGatewayPort: A freshly built adapter.

    Raises:
        UnknownPaymentMethod: If the method row is disabled, or its handler
            is not registered or not enabled.
        GatewayConfigurationError: If the processor's credentials are missing.
    """
    method = PaymentMethod.objects.filter(code=code).first()
    if method is not None and not method.enabled:
        raise UnknownPaymentMethod(code)
    handler = method.handler if method is not None else code

    enabled = getattr(settings, "PAYMENT_METHOD_HANDLERS", ["dummy"])
    factory = GATEWAY_FACTORIES.get(handler)
    if factory is None or handler not in enabled:
        raise UnknownPaymentMethod(code)
    return factory()


def webhook_options_from_settings() -> WebhookOptions:
    return WebhookOptions(
        automation_base_url=settings.AUTOMATION_BASE_URL,
        automation_secret_key=settings.AUTOMATION_SECRET_KEY,
        trigger_states=settings.AUTOMATION_TRIGGER_STATES,
        timeout_secs=settings.AUTOMATION_TIMEOUT_SECS,
    )


def get_webhook_dispatcher() -> OrderWebhookDispatcher:
    return OrderWebhookDispatcher(webhook_options_from_settings())
