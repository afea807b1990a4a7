"""Pydantic schemas for the checkout integrations.

Handler arguments (promotion rules, fulfillment handler), component options
(webhook dispatcher, gateway credentials) and inbound API payloads are all
validated here, once, when they are loaded. Field aliases accept the
camelCase names used by the admin configuration and by external callers.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TRIGGER_STATES = ("PaymentSettled",)
DEFAULT_FULFILLMENT_METHOD = "Automation"


class _Args(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ---- Promotion args ----
class AnchorSkuArgs(_Args):
    """Arguments of the ``has_anchor_sku`` condition.

    Attributes:
        anchor_sku: SKU whose quantity gates the promotion.
        min_qty: Minimum summed quantity of the anchor SKU (default 1); 0
            makes the condition always hold.
    """

    anchor_sku: str = Field(alias="anchorSku", min_length=1)
    min_qty: int = Field(default=1, alias="minQty", ge=0)

    @field_validator("min_qty", mode="before")
    @classmethod
    def default_min_qty(cls, v: Any) -> Any:
        return 1 if v is None else v


class AccessoryDiscountArgs(_Args):
    """Arguments of the ``accessory_percentage_discount`` action.

    Attributes:
        discount_percent: Whole percentage in [0, 100].
        target_skus: SKUs the discount applies to.
    """

    discount_percent: int = Field(alias="discount", ge=0, le=100)
    target_skus: frozenset[str] = Field(default=frozenset(), alias="targetSkus")

    @field_validator("target_skus", mode="before")
    @classmethod
    def split_target_skus(cls, v: Any) -> Any:
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset(s.strip() for s in v.split(",") if s.strip())
        return v


# ---- Fulfillment ----
class FulfillmentArgs(_Args):
    """Arguments of the ``automation-fulfillment`` handler."""

    method: str = DEFAULT_FULFILLMENT_METHOD
    tracking_code: Optional[str] = Field(default=None, alias="trackingCode")

    @field_validator("method", mode="before")
    @classmethod
    def default_method(cls, v: Any) -> Any:
        return DEFAULT_FULFILLMENT_METHOD if v is None else v


class FulfillmentResult(BaseModel):
    """Fulfillment data handed back to the order system.

    ``tracking_code`` is None when absent; serialize with
    ``model_dump(by_alias=True, exclude_none=True)`` so the key is omitted.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    method: str
    tracking_code: Optional[str] = Field(default=None, alias="trackingCode")

    def as_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class FulfillmentIn(FulfillmentArgs):
    """Body of the fulfillment intake endpoint.

    Attributes:
        lines: Optional order-line ids to fulfill; all lines when omitted.
    """

    lines: Optional[list[int]] = None


# ---- Payments ----
class PaymentIn(BaseModel):
    """Body of the add-payment endpoint.

    Attributes:
        method: Payment method code (``braintree``, ``paypal``, ``dummy``).
        amount: Requested amount in minor units; the order total is used
            when omitted.
        metadata: Processor specific data forwarded to the gateway as is.
    """

    method: str = Field(min_length=1)
    amount: Optional[int] = Field(default=None, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class BraintreeCredentials(BaseModel):
    """Braintree API credentials read from the environment."""

    model_config = ConfigDict(frozen=True)

    merchant_id: str = Field(min_length=1)
    public_key: str = Field(min_length=1)
    private_key: str = Field(min_length=1)
    environment: str = "Sandbox"

    @property
    def is_production(self) -> bool:
        return "prod" in self.environment.lower()


# ---- Webhook dispatcher ----
class WebhookOptions(BaseModel):
    """Configuration of the order webhook dispatcher.

    Attributes:
        automation_base_url: Base URL of the automation system.
        automation_secret_key: Shared secret sent as ``secret`` query param.
        trigger_states: Order states that trigger a notification. An empty
            list falls back to ``["PaymentSettled"]``.
        timeout_secs: Bound applied to each notification request.
    """

    model_config = ConfigDict(frozen=True)

    automation_base_url: str = "http://localhost:3002"
    automation_secret_key: str = "change-me"
    trigger_states: frozenset[str] = frozenset(DEFAULT_TRIGGER_STATES)
    timeout_secs: float = Field(default=5.0, gt=0)

    @field_validator("trigger_states", mode="before")
    @classmethod
    def default_trigger_states(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [s.strip() for s in v.split(",") if s.strip()]
        if not v:
            return frozenset(DEFAULT_TRIGGER_STATES)
        return v
