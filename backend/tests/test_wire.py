# Overview: Pytest coverage for the camelCase wire helpers and the health route.

from datetime import date, datetime
from decimal import Decimal

from stockroom.wire import camelize, from_wire, snakeize, to_wire


def test_camelize_and_snakeize():
    assert camelize("invoice_number") == "invoiceNumber"
    assert camelize("id") == "id"
    assert snakeize("incomingInventoryId") == "incoming_inventory_id"


def test_from_wire_aliases():
    assert from_wire({"gstRate": 18, "vendor": 3}) == {"gst_percentage": 18, "vendor_id": 3}
    # The canonical key beats an alias, whichever comes first
    assert from_wire({"gstPercentage": 5, "gstRate": 18}) == {"gst_percentage": 5}
    assert from_wire(None) == {}


def test_from_wire_is_top_level_only():
    result = from_wire({"items": [{"skuId": 1}]})
    assert result == {"items": [{"skuId": 1}]}


def test_to_wire_values():
    value = to_wire({
        "unit_price": Decimal("12.50"),
        "invoice_date": date(2024, 3, 1),
        "created_at": datetime(2024, 3, 1, 10, 30),
        "items": [{"sku_id": 1}],
    })
    assert value["unitPrice"] == 12.5
    assert value["invoiceDate"] == "2024-03-01"
    assert value["createdAt"].endswith("Z")
    assert value["items"] == [{"skuId": 1}]


def test_health(client, db_session):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json["data"]["checks"]["database"]["status"] == "healthy"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json["success"] is False
