"""Order webhook dispatcher.

Notifies the external automation system when an order enters one of the
configured trigger states (``PaymentSettled`` by default) by posting
``{orderCode, trigger}`` to ``{base}/api/fulfill-orders?secret=...``.

Delivery is best effort: each event gets at most one attempt, there is no
queue, retry or dead-letter store, and a failure never blocks or undoes the
transition that caused it. Failures are returned as a ``DispatchResult`` so
the subscribing code can log them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
from django.dispatch import Signal

from .domain import OrderTransitionEvent
from .http_adapters import request_headers
from .schemas import WebhookOptions

logger = logging.getLogger(__name__)

FULFILL_ORDERS_PATH = "/api/fulfill-orders"
DISPATCH_UID = "checkout.order-webhook"


class DispatchStatus(str, Enum):
    DELIVERED = "DELIVERED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class DispatchResult:
    """What happened to one transition event.

    Attributes:
        order_code: Code of the order the event refers to.
        trigger: The state the order entered.
        status: DELIVERED, SKIPPED (not a trigger state) or FAILED.
        status_code: HTTP status returned by the automation system, if any.
        error: Error detail when FAILED.
    """

    order_code: str
    trigger: str
    status: DispatchStatus
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not DispatchStatus.FAILED


class OrderWebhookDispatcher:
    """Push order transitions to the automation system.

    The options are read once at construction and never mutated afterwards,
    so a single dispatcher can serve concurrent events.
    """

    def __init__(self, options: WebhookOptions, transport: httpx.AsyncBaseTransport | None = None):
        self.options = options
        self._transport = transport

    @property
    def trigger_states(self) -> frozenset[str]:
        return self.options.trigger_states

    def endpoint(self) -> httpx.URL:
        """Notification URL: base URL + fulfill-orders path + secret param."""
        base = self.options.automation_base_url.rstrip("/")
        url = httpx.URL(f"{base}{FULFILL_ORDERS_PATH}")
        return url.copy_set_param("secret", self.options.automation_secret_key)

    async def handle(self, event: OrderTransitionEvent) -> DispatchResult:
        """Notify the automation system about one transition.

        Args:
            event: The order transition to react to.

        Returns:
            DispatchResult: SKIPPED when ``event.to_state`` is not a trigger
            state, DELIVERED on a 2xx answer, FAILED otherwise. Never raises
            for HTTP or transport problems.
        """
        code = event.order.code
        trigger = event.to_state
        if trigger not in self.trigger_states:
            return DispatchResult(code, trigger, DispatchStatus.SKIPPED)

        body = {"orderCode": code, "trigger": trigger}
        headers = request_headers({"Content-Type": "application/json"})
        try:
            async with httpx.AsyncClient(timeout=self.options.timeout_secs, transport=self._transport) as client:
                resp = await client.post(self.endpoint(), json=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return DispatchResult(code, trigger, DispatchStatus.FAILED, error=str(e) or type(e).__name__)

        if 200 <= resp.status_code < 300:
            return DispatchResult(code, trigger, DispatchStatus.DELIVERED, status_code=resp.status_code)
        return DispatchResult(
            code,
            trigger,
            DispatchStatus.FAILED,
            status_code=resp.status_code,
            error=f"Webhook responded {resp.status_code}: {resp.text}",
        )

    async def on_transition(self, sender, event: OrderTransitionEvent, **kwargs) -> DispatchResult:
        """Signal receiver: dispatch, then log the result."""
        result = await self.handle(event)
        if result.status is DispatchStatus.DELIVERED:
            logger.info("Pushed order %s to automations fulfill-orders", result.order_code)
        elif result.status is DispatchStatus.FAILED:
            logger.error(
                "Failed to push order webhook: %s",
                result.error,
                extra={"order_code": result.order_code, "trigger": result.trigger},
            )
        return result

    def subscribe(self, signal: Signal) -> None:
        signal.connect(self.on_transition, weak=False, dispatch_uid=DISPATCH_UID)

    def unsubscribe(self, signal: Signal) -> None:
        signal.disconnect(dispatch_uid=DISPATCH_UID)
