from django.db import models

from .domain import OrderState, PaymentState


class Channel(models.Model):
    code = models.CharField(max_length=64, unique=True)
    currency_code = models.CharField(max_length=3, default="USD")
    prices_include_tax = models.BooleanField(default=False)

    class Meta:
        db_table = "checkout_channel"

    def __str__(self):
        return self.code


class PaymentMethod(models.Model):
    # `handler` is a gateway code known to providers.GATEWAY_FACTORIES
    code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=128)
    handler = models.CharField(max_length=64)
    enabled = models.BooleanField(default=True)

    class Meta:
        db_table = "checkout_payment_method"


class OrderModel(models.Model):
    STATE_CHOICES = [(s.value, s.value) for s in OrderState]

    code = models.CharField(max_length=32, unique=True)
    channel = models.ForeignKey(Channel, null=True, blank=True, on_delete=models.SET_NULL, related_name="orders")
    state = models.CharField(max_length=32, choices=STATE_CHOICES, default=OrderState.ADDING_ITEMS.value)
    currency_code = models.CharField(max_length=3, default="USD")
    # tax-inclusive total in minor units
    total_with_tax = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "checkout_order"
        ordering = ["-created_at"]


class OrderLineModel(models.Model):
    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="lines")
    sku = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField()
    unit_price = models.PositiveIntegerField()
    unit_price_with_tax = models.PositiveIntegerField()

    class Meta:
        db_table = "checkout_order_line"
        ordering = ["id"]


class PaymentModel(models.Model):
    STATE_CHOICES = [(s.value, s.value) for s in PaymentState]

    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="payments")
    method = models.CharField(max_length=64)
    amount = models.IntegerField()
    state = models.CharField(max_length=16, choices=STATE_CHOICES)
    transaction_id = models.CharField(max_length=128, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "checkout_payment"


class FulfillmentModel(models.Model):
    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="fulfillments")
    lines = models.ManyToManyField(OrderLineModel, related_name="fulfillments")
    handler_code = models.CharField(max_length=64)
    method = models.CharField(max_length=128)
    tracking_code = models.CharField(max_length=128, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "checkout_fulfillment"
