from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Channel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=64, unique=True)),
                ("currency_code", models.CharField(default="USD", max_length=3)),
                ("prices_include_tax", models.BooleanField(default=False)),
            ],
            options={"db_table": "checkout_channel"},
        ),
        migrations.CreateModel(
            name="PaymentMethod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=128)),
                ("handler", models.CharField(max_length=64)),
                ("enabled", models.BooleanField(default=True)),
            ],
            options={"db_table": "checkout_payment_method"},
        ),
        migrations.CreateModel(
            name="OrderModel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("AddingItems", "AddingItems"),
                            ("ArrangingPayment", "ArrangingPayment"),
                            ("PaymentAuthorized", "PaymentAuthorized"),
                            ("PaymentSettled", "PaymentSettled"),
                            ("PartiallyShipped", "PartiallyShipped"),
                            ("Shipped", "Shipped"),
                            ("Delivered", "Delivered"),
                            ("Cancelled", "Cancelled"),
                        ],
                        default="AddingItems",
                        max_length=32,
                    ),
                ),
                ("currency_code", models.CharField(default="USD", max_length=3)),
                ("total_with_tax", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "channel",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="checkout.channel",
                    ),
                ),
            ],
            options={"db_table": "checkout_order", "ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="OrderLineModel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(max_length=64)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.PositiveIntegerField()),
                ("unit_price_with_tax", models.PositiveIntegerField()),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="checkout.ordermodel",
                    ),
                ),
            ],
            options={"db_table": "checkout_order_line", "ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="PaymentModel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("method", models.CharField(max_length=64)),
                ("amount", models.IntegerField()),
                (
                    "state",
                    models.CharField(
                        choices=[("Settled", "Settled"), ("Declined", "Declined"), ("Error", "Error")],
                        max_length=16,
                    ),
                ),
                ("transaction_id", models.CharField(blank=True, default="", max_length=128)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("error_message", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="checkout.ordermodel",
                    ),
                ),
            ],
            options={"db_table": "checkout_payment"},
        ),
        migrations.CreateModel(
            name="FulfillmentModel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("handler_code", models.CharField(max_length=64)),
                ("method", models.CharField(max_length=128)),
                ("tracking_code", models.CharField(blank=True, default="", max_length=128)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="fulfillments",
                        to="checkout.ordermodel",
                    ),
                ),
                ("lines", models.ManyToManyField(related_name="fulfillments", to="checkout.orderlinemodel")),
            ],
            options={"db_table": "checkout_fulfillment"},
        ),
    ]
