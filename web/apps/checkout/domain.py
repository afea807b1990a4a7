"""Domain models and ports for the checkout integrations.

This module contains the immutable snapshots the integration core reads
(orders and their lines), the payment request/outcome DTOs exchanged with
gateway adapters, the order transition event consumed by the webhook
dispatcher, and the protocol (port) every payment gateway implements.

Order rows and their lifecycle are owned by the surrounding order system;
the core only inspects snapshots and reacts to transition events.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Protocol


# ---- Enums ----
class OrderState(str, Enum):
    """Order lifecycle states as exposed by the order system."""

    ADDING_ITEMS = "AddingItems"
    ARRANGING_PAYMENT = "ArrangingPayment"
    PAYMENT_AUTHORIZED = "PaymentAuthorized"
    PAYMENT_SETTLED = "PaymentSettled"
    PARTIALLY_SHIPPED = "PartiallyShipped"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentState(str, Enum):
    """Settlement outcome of a payment attempt."""

    SETTLED = "Settled"
    DECLINED = "Declined"
    ERROR = "Error"


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class OrderLine:
    """A single order line as seen by rules and adapters.

    Attributes:
        sku: Variant SKU of the line.
        quantity: Number of units, always positive.
        unit_price: Tax-exclusive unit price in minor units.
        unit_price_with_tax: Tax-inclusive unit price in minor units.
    """

    sku: str
    quantity: int
    unit_price: int
    unit_price_with_tax: int


@dataclass(frozen=True)
class Order:
    """Read-only snapshot of an order.

    Attributes:
        id: Identifier of the order row, if persisted.
        code: Human-readable order code shared with external systems.
        currency_code: ISO currency code, e.g. ``USD``.
        total_with_tax: Authoritative tax-inclusive total in minor units,
            or None when the order system has not computed it.
        state: Current lifecycle state name.
        lines: Ordered order lines.
    """

    id: Optional[int]
    code: str
    currency_code: str = "USD"
    total_with_tax: Optional[int] = None
    state: str = OrderState.ADDING_ITEMS.value
    lines: tuple[OrderLine, ...] = ()


@dataclass(frozen=True)
class PaymentRequest:
    """A checkout request to pay for an order.

    ``metadata`` is processor specific and opaque to the core: a one-time
    payment nonce and device data for card processors, or the identifiers
    of an order captured client-side for redirect-style processors.
    """

    order: Optional[Order]
    amount: int
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentOutcome:
    """Result of a settlement attempt. Never mutated after creation.

    Attributes:
        amount: Amount in minor units the outcome refers to.
        state: Settled, Declined or Error.
        transaction_id: Processor transaction id, only on Settled.
        metadata: Audit data for reconciliation (processor, instrument
            type, raw status, ...).
        reason: Human-readable reason, only on Declined/Error.
    """

    amount: int
    state: PaymentState
    transaction_id: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    reason: Optional[str] = None

    @classmethod
    def settled(cls, amount: int, transaction_id: str, metadata: Mapping[str, Any]) -> "PaymentOutcome":
        return cls(amount=amount, state=PaymentState.SETTLED, transaction_id=transaction_id, metadata=dict(metadata))

    @classmethod
    def declined(cls, amount: int, reason: str) -> "PaymentOutcome":
        return cls(amount=amount, state=PaymentState.DECLINED, metadata={"error": reason}, reason=reason)

    @classmethod
    def error(cls, amount: int, reason: str) -> "PaymentOutcome":
        return cls(amount=amount, state=PaymentState.ERROR, metadata={"error": reason}, reason=reason)

    @property
    def is_settled(self) -> bool:
        return self.state is PaymentState.SETTLED


@dataclass(frozen=True)
class SettlementConfirmation:
    success: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class OrderTransitionEvent:
    """Notification that an order moved from one state to another."""

    order: Order
    from_state: str
    to_state: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ---- Ports (DIP) ----
class PaymentGatewayPort(Protocol):
    """Port describing a payment processor integration.

    Implementations must never raise for expected client-side conditions
    (missing order, missing correlation data) or for transport failures;
    those are reported as Declined/Error outcomes instead.
    """

    code: str

    async def settle(self, request: PaymentRequest) -> PaymentOutcome:
        """Turn a payment request into a settlement outcome.

        Args:
            request: The checkout payment request.

        Returns:
            PaymentOutcome: Settled, Declined or Error.
        """
        raise NotImplementedError()

    async def confirm_settlement(self, outcome: PaymentOutcome) -> SettlementConfirmation:
        """Post-hoc confirmation step for processors that need one."""
        raise NotImplementedError()
