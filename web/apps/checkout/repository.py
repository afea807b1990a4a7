"""Repository layer between the order rows and the integration core.

Maps Django rows to the immutable domain snapshots the core reads, records
payment outcomes and fulfillments, and performs order state transitions.
A transition is persisted first and only then announced through
``events.announce``; receivers can never undo or block it.
"""

import logging
from concurrent.futures import Future
from typing import Iterable, Optional

from django.db import transaction

from .domain import Order, OrderLine, OrderTransitionEvent, PaymentOutcome
from .events import announce
from .models import FulfillmentModel, OrderLineModel, OrderModel, PaymentModel
from .schemas import FulfillmentResult

logger = logging.getLogger(__name__)


def to_line(obj: OrderLineModel) -> OrderLine:
    return OrderLine(
        sku=obj.sku,
        quantity=obj.quantity,
        unit_price=obj.unit_price,
        unit_price_with_tax=obj.unit_price_with_tax,
    )


def to_order(obj: OrderModel) -> Order:
    """Snapshot an order row and its lines."""
    return Order(
        id=obj.id,
        code=obj.code,
        currency_code=obj.currency_code,
        total_with_tax=obj.total_with_tax,
        state=obj.state,
        lines=tuple(to_line(line) for line in obj.lines.all()),
    )


class OrderRepository:
    """Thin persistence API used by the checkout views."""

    def get_by_code(self, code: str) -> Optional[OrderModel]:
        return OrderModel.objects.filter(code=code).first()

    def record_payment(self, order: OrderModel, method: str, outcome: PaymentOutcome) -> PaymentModel:
        """Persist a payment outcome as a payment row."""
        return PaymentModel.objects.create(
            order=order,
            method=method,
            amount=outcome.amount,
            state=outcome.state.value,
            transaction_id=outcome.transaction_id or "",
            metadata=dict(outcome.metadata),
            error_message=outcome.reason or "",
        )

    def record_fulfillment(
        self,
        order: OrderModel,
        handler_code: str,
        result: FulfillmentResult,
        lines: Iterable[OrderLineModel],
    ) -> FulfillmentModel:
        """Create one fulfillment row for the given lines."""
        with transaction.atomic():
            obj = FulfillmentModel.objects.create(
                order=order,
                handler_code=handler_code,
                method=result.method,
                tracking_code=result.tracking_code or "",
            )
            obj.lines.set(list(lines))
        return obj

    def transition(self, order: OrderModel, to_state: str) -> Future:
        """Move ``order`` to ``to_state`` and announce the transition.

        Args:
            order: Order row to update.
            to_state: Target state name.

        Returns:
            Future: Resolves to the ``(receiver, response)`` pairs of the
            signal, e.g. the webhook dispatcher's ``DispatchResult``.
        """
        from_state = order.state
        order.state = to_state
        order.save(update_fields=["state", "updated_at"])
        event = OrderTransitionEvent(order=to_order(order), from_state=from_state, to_state=to_state)
        logger.info("Order %s transitioned %s -> %s", order.code, from_state, to_state)
        return announce(OrderModel, event)
