"""Fulfillment handler used by the automation pipeline.

The external automation system reports back how an order was shipped; the
order system calls ``create_fulfillment`` against the chosen lines and stores
the returned data on a new fulfillment record. No network call happens here
and every call produces exactly one result; de-duplicating repeated calls is
the caller's job.
"""

from typing import Any, Mapping, Sequence

from .domain import Order, OrderLine
from .schemas import FulfillmentArgs, FulfillmentResult


class AutomationFulfillmentHandler:
    code = "automation-fulfillment"
    description = "Create fulfillments via automation pipeline"

    def create_fulfillment(
        self,
        orders: Sequence[Order],
        lines: Sequence[OrderLine],
        args: FulfillmentArgs | Mapping[str, Any],
    ) -> FulfillmentResult:
        """Build the fulfillment data from the handler args.

        Args:
            orders: Orders being fulfilled.
            lines: Order lines included in the fulfillment.
            args: ``{method?, trackingCode?}``; ``method`` defaults to
                ``"Automation"``.

        Returns:
            FulfillmentResult: ``method`` and, only when non-empty,
            ``trackingCode``.
        """
        if not isinstance(args, FulfillmentArgs):
            args = FulfillmentArgs.model_validate(dict(args))
        return FulfillmentResult(method=args.method, tracking_code=args.tracking_code or None)
