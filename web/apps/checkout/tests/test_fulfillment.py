"""Tests for the automation fulfillment handler and its intake endpoint."""
import pytest

from apps.checkout.fulfillment import AutomationFulfillmentHandler
from apps.checkout.models import FulfillmentModel
from apps.checkout.schemas import FulfillmentArgs


def test_defaults_method_and_omits_missing_tracking_code():
    result = AutomationFulfillmentHandler().create_fulfillment([], [], {})
    assert result.as_payload() == {"method": "Automation"}
    assert "trackingCode" not in result.as_payload()


@pytest.mark.parametrize("args", [{"trackingCode": ""}, {"trackingCode": None}, {"method": None}])
def test_empty_values_fall_back_to_defaults(args):
    assert AutomationFulfillmentHandler().create_fulfillment([], [], args).as_payload() == {"method": "Automation"}


def test_includes_tracking_code_when_present():
    args = FulfillmentArgs(method="UPS", trackingCode="1Z999")
    result = AutomationFulfillmentHandler().create_fulfillment([], [], args)
    assert result.as_payload() == {"method": "UPS", "trackingCode": "1Z999"}


URL = "/api/checkout/orders/{code}/fulfillments/"


@pytest.mark.django_db
def test_intake_creates_one_fulfillment(client, make_order):
    order = make_order("ABC123", lines=(("TEE-1", 1, 2500, 3000), ("CAP-1", 2, 1000, 1200)))
    r = client.post(
        URL.format(code="ABC123"),
        data={"trackingCode": "TRACK1"},
        content_type="application/json",
        HTTP_X_AUTOMATION_SECRET="S",
    )
    assert r.status_code == 201
    assert r.json() == {"method": "Automation", "trackingCode": "TRACK1"}

    [fulfillment] = FulfillmentModel.objects.filter(order=order)
    assert fulfillment.handler_code == "automation-fulfillment"
    assert fulfillment.tracking_code == "TRACK1"
    assert fulfillment.lines.count() == 2


@pytest.mark.django_db
def test_intake_accepts_secret_query_param_and_line_selection(client, make_order):
    order = make_order("SEL1", lines=(("TEE-1", 1, 2500, 3000), ("CAP-1", 2, 1000, 1200)))
    first_line = order.lines.first()
    r = client.post(
        URL.format(code="SEL1") + "?secret=S",
        data={"method": "DHL", "lines": [first_line.id]},
        content_type="application/json",
    )
    assert r.status_code == 201
    assert r.json() == {"method": "DHL"}
    assert list(FulfillmentModel.objects.get().lines.all()) == [first_line]


@pytest.mark.django_db
def test_repeated_calls_create_repeated_fulfillments(client, make_order):
    make_order("DUP1")
    for _ in range(2):
        r = client.post(URL.format(code="DUP1"), data={}, content_type="application/json", HTTP_X_AUTOMATION_SECRET="S")
        assert r.status_code == 201
    assert FulfillmentModel.objects.count() == 2


@pytest.mark.django_db
def test_intake_rejects_wrong_secret(client, make_order):
    make_order("SEC1")
    r = client.post(URL.format(code="SEC1"), data={}, content_type="application/json", HTTP_X_AUTOMATION_SECRET="nope")
    assert r.status_code == 403
    assert FulfillmentModel.objects.count() == 0


@pytest.mark.django_db
def test_intake_unknown_order(client):
    r = client.post(URL.format(code="MISSING"), data={}, content_type="application/json", HTTP_X_AUTOMATION_SECRET="S")
    assert r.status_code == 404
