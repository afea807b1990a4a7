"""Exceptions raised by the checkout integrations.

Only configuration and startup problems are raised. Expected checkout
conditions (missing order, missing nonce, processor declines, transport
failures) are reported as outcomes, never as exceptions.
"""


class CheckoutError(Exception):
    """Base class for checkout integration errors."""


class GatewayConfigurationError(CheckoutError):
    """Processor credentials are missing or invalid."""


class UnknownPaymentMethod(CheckoutError):
    """No enabled gateway is registered for the requested method code."""


class PromotionConfigurationError(CheckoutError):
    """A promotion references an unknown rule or carries invalid args."""


class BootstrapError(CheckoutError):
    """A startup step (seed or migrations) could not be completed."""
