"""Upsell promotion: discount accessories when an anchor product is in the cart.

The promotion is made of one condition and one item action, each with a
typed argument model validated when the promotion is loaded:

- ``has_anchor_sku``: the cart holds at least ``minQty`` units of
  ``anchorSku``.
- ``accessory_percentage_discount``: ``discount`` % off the unit price of the
  lines whose SKU is in ``targetSkus``.

Rounding follows ``money.percent_of`` (half-up on the magnitude).
"""

from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from .domain import Order, OrderLine
from .errors import PromotionConfigurationError
from .money import percent_of, unit_price
from .schemas import AccessoryDiscountArgs, AnchorSkuArgs


class HasAnchorSku:
    code = "has_anchor_sku"
    args_model = AnchorSkuArgs
    description = "Cart contains { minQty }+ of anchor SKU { anchorSku }"

    @staticmethod
    def check(order: Order, args: AnchorSkuArgs) -> bool:
        count = sum(line.quantity for line in order.lines if (line.sku or "") == args.anchor_sku)
        return count >= args.min_qty


class AccessoryPercentageDiscount:
    """Per-unit percentage discount for accessory SKUs.

    The rule engine only evaluates the action when every declared condition
    holds; ``execute`` does not re-check them.
    """

    code = "accessory_percentage_discount"
    args_model = AccessoryDiscountArgs
    description = "Discount { discount }% for accessory SKUs if anchor is present"
    conditions = (HasAnchorSku,)

    @staticmethod
    def execute(line: OrderLine, args: AccessoryDiscountArgs, prices_include_tax: bool) -> int:
        """Return the (non-positive) per-unit discount for ``line``.

        Args:
            line: The order line being priced.
            args: Validated action arguments.
            prices_include_tax: Whether the selling channel's prices include
                tax; selects the tax-inclusive or tax-exclusive unit price.

        Returns:
            int: 0 for non-target SKUs, otherwise ``-discount% * unit price``
            in minor units.
        """
        if (line.sku or "") not in args.target_skus:
            return 0
        return -percent_of(unit_price(line, prices_include_tax), args.discount_percent)


PROMOTION_CONDITIONS = {HasAnchorSku.code: HasAnchorSku}
PROMOTION_ACTIONS = {AccessoryPercentageDiscount.code: AccessoryPercentageDiscount}


@dataclass(frozen=True)
class ConfiguredCondition:
    handler: type
    args: BaseModel


@dataclass(frozen=True)
class Promotion:
    """A loaded promotion: validated conditions plus one item action."""

    name: str
    conditions: tuple[ConfiguredCondition, ...]
    action: type
    action_args: BaseModel

    def applies_to(self, order: Order) -> bool:
        return all(c.handler.check(order, c.args) for c in self.conditions)

    def line_discounts(self, order: Order, prices_include_tax: bool) -> dict[int, int]:
        """Per-unit discount of every discounted line, keyed by line index.

        Empty when a condition does not hold.
        """
        if not self.applies_to(order):
            return {}
        discounts = {}
        for index, line in enumerate(order.lines):
            amount = self.action.execute(line, self.action_args, prices_include_tax)
            if amount:
                discounts[index] = amount
        return discounts


def _validate(handler: type, raw_args: Mapping[str, Any] | None) -> BaseModel:
    try:
        return handler.args_model.model_validate(dict(raw_args or {}))
    except ValidationError as e:
        raise PromotionConfigurationError(f"{handler.code}: {e}") from e


def load_promotion(raw: Mapping[str, Any]) -> Promotion:
    """Validate a promotion configuration.

    The action's declared conditions are always part of the promotion; they
    must be configured with args under ``conditions``.

    Args:
        raw: ``{"name", "conditions": [{"code", "args"}], "action": {"code",
            "args"}}``.

    Returns:
        Promotion: The validated promotion.

    Raises:
        PromotionConfigurationError: On unknown codes, missing required
            conditions or invalid args.
    """
    action_cfg = raw.get("action") or {}
    action = PROMOTION_ACTIONS.get(action_cfg.get("code"))
    if action is None:
        raise PromotionConfigurationError(f"Unknown promotion action: {action_cfg.get('code')!r}")

    conditions = []
    for cond_cfg in raw.get("conditions") or []:
        handler = PROMOTION_CONDITIONS.get(cond_cfg.get("code"))
        if handler is None:
            raise PromotionConfigurationError(f"Unknown promotion condition: {cond_cfg.get('code')!r}")
        conditions.append(ConfiguredCondition(handler, _validate(handler, cond_cfg.get("args"))))

    configured = {c.handler for c in conditions}
    missing = [c.code for c in action.conditions if c not in configured]
    if missing:
        raise PromotionConfigurationError(f"{action.code} requires conditions: {', '.join(missing)}")

    return Promotion(
        name=raw.get("name") or action.code,
        conditions=tuple(conditions),
        action=action,
        action_args=_validate(action, action_cfg.get("args")),
    )
