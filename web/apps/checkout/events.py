"""Signals emitted by the order system.

``order_state_transition`` is sent with ``event=OrderTransitionEvent`` every
time an order changes state. Receivers may be sync or async.

``announce`` delivers the signal off the request path: on a small worker
pool by default, inline when ``ORDER_EVENTS_IN_BACKGROUND`` is false. It uses
``send_robust``, so a failing receiver is logged and never reaches the code
that performed the transition.
"""

import contextvars
import logging
from concurrent.futures import Future, ThreadPoolExecutor

from django.conf import settings
from django.dispatch import Signal

logger = logging.getLogger(__name__)

order_state_transition = Signal()

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="order-events")


def _deliver(sender, event) -> list:
    responses = order_state_transition.send_robust(sender=sender, event=event)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "Order transition receiver %r failed: %s",
                receiver,
                response,
                exc_info=response,
                extra={"order_code": event.order.code, "trigger": event.to_state},
            )
    return responses


def announce(sender, event) -> Future:
    """Send ``order_state_transition`` for ``event``.

    Returns:
        Future: Resolves to the ``(receiver, response)`` pairs; a receiver
        that raised has its exception as response.
    """
    if getattr(settings, "ORDER_EVENTS_IN_BACKGROUND", True):
        # carry the request id over to the worker thread
        return _executor.submit(contextvars.copy_context().run, _deliver, sender, event)
    future = Future()
    future.set_result(_deliver(sender, event))
    return future
