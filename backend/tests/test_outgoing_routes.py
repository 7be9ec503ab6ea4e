# Overview: Pytest coverage for the outgoing inventory HTTP workflow.

"""
Outgoing Inventory Route Tests

Stock is seeded directly on the SKU; completed dispatches take it out,
deletes put it back, and nothing ever drives it below zero.
"""

import pytest

from stockroom.extensions import db
from stockroom.models import OutgoingInventory, OutgoingInventoryItem, SKU

from conftest import auth_headers, token_for


BASE = "/api/inventory/outgoing"


def outgoing_body(library, *, items=None, status="completed", **header) -> dict:
    """A valid camelCase create body: 10 units to a customer at 20 + 18% GST."""
    body = {
        "documentType": "sales_invoice",
        "invoiceChallanDate": "2024-04-10",
        "invoiceChallanNumber": "SI-001",
        "destinationType": "customer",
        "destinationName": "Kumar Traders",
        "dispatchedBy": "Dock 2",
        "status": status,
        "items": items if items is not None else [
            {"skuId": library["sku"].id, "outgoingQuantity": 10, "unitPrice": 20, "gstRate": 18}
        ],
    }
    body.update(header)
    return body


def _stock(sku_id):
    return db.session.get(SKU, sku_id).current_stock


@pytest.fixture
def stocked_a(db_session, library_a, second_sku_a):
    """50 units of the first Acme SKU, 5 of the second."""
    library_a["sku"].current_stock = 50
    second_sku_a.current_stock = 5
    db_session.commit()
    return library_a


class TestCreateOutgoing:
    def test_completed_dispatch_takes_stock(self, client, headers_a, stocked_a):
        response = client.post(BASE, json=outgoing_body(stocked_a), headers=headers_a)

        assert response.status_code == 201, response.json
        body = response.json
        assert body["message"] == "Outgoing inventory created successfully"
        header = body["data"]
        assert header["status"] == "completed"
        assert header["destinationName"] == "Kumar Traders"
        assert header["totalValue"] == 236.0

        item = header["items"][0]
        assert item["skuCode"] == "ACMEAASKU00001"
        assert item["outgoingQuantity"] == 10
        assert item["rejectedQuantity"] == 0
        assert item["totalValueExclGst"] == 200.0
        assert item["gstAmount"] == 36.0

        assert _stock(stocked_a["sku"].id) == 40

    def test_draft_leaves_stock_alone(self, client, headers_a, stocked_a):
        response = client.post(BASE, json=outgoing_body(stocked_a, status="draft"), headers=headers_a)

        assert response.status_code == 201
        assert response.json["data"]["status"] == "draft"
        assert _stock(stocked_a["sku"].id) == 50

    def test_insufficient_stock_rolls_back_whole_document(self, client, headers_a, stocked_a, second_sku_a):
        items = [
            {"skuId": stocked_a["sku"].id, "outgoingQuantity": 10, "unitPrice": 20},
            {"skuId": second_sku_a.id, "outgoingQuantity": 6, "unitPrice": 20},
        ]
        response = client.post(BASE, json=outgoing_body(stocked_a, items=items), headers=headers_a)

        assert response.status_code == 400
        assert response.json["success"] is False
        assert response.json["error"] == "Insufficient stock for SKU ACMEAASKU00002. Available: 5, Required: 6"
        assert _stock(stocked_a["sku"].id) == 50
        assert _stock(second_sku_a.id) == 5
        assert db.session.query(OutgoingInventory).count() == 0
        assert db.session.query(OutgoingInventoryItem).count() == 0

    def test_exact_stock_can_be_dispatched(self, client, headers_a, stocked_a, second_sku_a):
        items = [{"skuId": second_sku_a.id, "outgoingQuantity": 5, "unitPrice": 1}]
        response = client.post(BASE, json=outgoing_body(stocked_a, items=items), headers=headers_a)

        assert response.status_code == 201
        assert _stock(second_sku_a.id) == 0

    def test_rejected_return_to_vendor_leaves_stock(self, client, headers_a, stocked_a):
        body = outgoing_body(
            stocked_a,
            documentType="delivery_challan",
            documentSubType="replacement",
            deliveryChallanSubType="to_vendor",
            destinationType="vendor",
            destinationId=stocked_a["vendor"].id,
            items=[{"skuId": stocked_a["sku"].id, "outgoingQuantity": 80, "unitPrice": 20}],
        )
        response = client.post(BASE, json=body, headers=headers_a)

        assert response.status_code == 201, response.json
        header = response.json["data"]
        assert header["destinationName"] == "Acme Vendor"
        assert header["items"][0]["rejectedQuantity"] == 80
        assert _stock(stocked_a["sku"].id) == 50

    def test_store_to_factory_destination(self, client, headers_a, stocked_a):
        body = outgoing_body(stocked_a, documentType="transfer_note", destinationType="store_to_factory")
        body.pop("destinationName")
        response = client.post(BASE, json=body, headers=headers_a)

        assert response.status_code == 201
        assert response.json["data"]["destinationName"] == "Store to Factory"

    @pytest.mark.parametrize("change, message", [
        ({"documentType": None}, "documentType is required"),
        ({"invoiceChallanDate": None}, "invoiceChallanDate is required"),
        ({"items": []}, "At least one item is required"),
        ({"destinationType": "warehouse"}, "destinationType must be one of: customer, vendor, store_to_factory"),
        ({"destinationName": None}, "destinationName is required for a customer destination"),
    ])
    def test_header_validation(self, client, headers_a, stocked_a, change, message):
        body = outgoing_body(stocked_a)
        body.update(change)
        response = client.post(BASE, json=body, headers=headers_a)

        assert response.status_code == 400
        assert response.json["error"] == message
        assert _stock(stocked_a["sku"].id) == 50

    @pytest.mark.parametrize("change, message", [
        ({"skuId": None}, "items[0].skuId is required"),
        ({"outgoingQuantity": 0}, "items[0].outgoingQuantity must be >= 1"),
        ({"unitPrice": -1}, "items[0].unitPrice must be >= 0"),
    ])
    def test_item_validation(self, client, headers_a, stocked_a, change, message):
        item = {"skuId": stocked_a["sku"].id, "outgoingQuantity": 2, "unitPrice": 1, **change}
        response = client.post(BASE, json=outgoing_body(stocked_a, items=[item]), headers=headers_a)

        assert response.status_code == 400
        assert response.json["error"] == message
        assert db.session.query(OutgoingInventory).count() == 0

    def test_duplicate_sku_rejected(self, client, headers_a, stocked_a):
        line = {"skuId": stocked_a["sku"].id, "outgoingQuantity": 1, "unitPrice": 1}
        response = client.post(BASE, json=outgoing_body(stocked_a, items=[line, dict(line)]), headers=headers_a)

        assert response.status_code == 400
        assert response.json["error"] == "items[1].skuId appears more than once"

    def test_body_must_be_an_object(self, client, headers_a, stocked_a):
        response = client.post(BASE, json=["not", "an", "object"], headers=headers_a)

        assert response.status_code == 400
        assert response.json["error"] == "Invalid JSON payload"

    def test_foreign_sku_rejected(self, client, headers_a, stocked_a, library_b):
        items = [{"skuId": library_b["sku"].id, "outgoingQuantity": 1, "unitPrice": 1}]
        response = client.post(BASE, json=outgoing_body(stocked_a, items=items), headers=headers_a)

        assert response.status_code == 400
        assert response.json["error"] == "items[0].skuId not found for this company"


class TestStatusAndDelete:
    def test_completing_draft_takes_stock(self, client, headers_a, stocked_a):
        created = client.post(BASE, json=outgoing_body(stocked_a, status="draft"), headers=headers_a).json["data"]

        response = client.put(f"{BASE}/{created['id']}/status", json={"status": "completed"}, headers=headers_a)

        assert response.status_code == 200
        assert response.json["data"]["status"] == "completed"
        assert _stock(stocked_a["sku"].id) == 40

    def test_completing_draft_without_stock_fails(self, client, headers_a, stocked_a):
        items = [{"skuId": stocked_a["sku"].id, "outgoingQuantity": 30, "unitPrice": 1}]
        first = client.post(BASE, json=outgoing_body(stocked_a, items=items, status="draft"), headers=headers_a).json["data"]
        second = client.post(BASE, json=outgoing_body(stocked_a, items=items, status="draft"), headers=headers_a).json["data"]

        assert client.put(f"{BASE}/{first['id']}/status", json={"status": "completed"}, headers=headers_a).status_code == 200
        response = client.put(f"{BASE}/{second['id']}/status", json={"status": "completed"}, headers=headers_a)

        assert response.status_code == 400
        assert _stock(stocked_a["sku"].id) == 20
        assert db.session.get(OutgoingInventory, second["id"]).status == "draft"

    def test_completed_is_terminal(self, client, headers_a, stocked_a):
        created = client.post(BASE, json=outgoing_body(stocked_a), headers=headers_a).json["data"]

        response = client.put(f"{BASE}/{created['id']}/status", json={"status": "cancelled"}, headers=headers_a)

        assert response.status_code == 409
        assert _stock(stocked_a["sku"].id) == 40

    def test_delete_completed_returns_stock(self, client, headers_a, stocked_a):
        created = client.post(BASE, json=outgoing_body(stocked_a), headers=headers_a).json["data"]

        response = client.delete(f"{BASE}/{created['id']}", headers=headers_a)

        assert response.status_code == 200
        assert response.json["message"] == "Outgoing inventory deleted successfully"
        assert _stock(stocked_a["sku"].id) == 50
        assert client.get(f"{BASE}/{created['id']}", headers=headers_a).status_code == 404

    def test_delete_draft_keeps_stock(self, client, headers_a, stocked_a):
        created = client.post(BASE, json=outgoing_body(stocked_a, status="draft"), headers=headers_a).json["data"]

        assert client.delete(f"{BASE}/{created['id']}", headers=headers_a).status_code == 200
        assert _stock(stocked_a["sku"].id) == 50

    def test_delete_requires_admin(self, client, headers_a, stocked_a, plain_user_a):
        created = client.post(BASE, json=outgoing_body(stocked_a), headers=headers_a).json["data"]
        clerk = auth_headers(token_for(plain_user_a), "ACMEAA")

        response = client.delete(f"{BASE}/{created['id']}", headers=clerk)

        assert response.status_code == 403
        assert _stock(stocked_a["sku"].id) == 40


class TestReads:
    @pytest.fixture
    def dispatched(self, client, headers_a, stocked_a, second_sku_a):
        first = outgoing_body(stocked_a, invoiceChallanDate="2024-04-01", invoiceChallanNumber="SI-001")
        second = outgoing_body(
            stocked_a,
            invoiceChallanDate="2024-04-15",
            invoiceChallanNumber=None,
            docketNumber="DK-9",
            destinationName="Rao Electricals",
            items=[
                {"skuId": stocked_a["sku"].id, "outgoingQuantity": 3, "unitPrice": 10},
                {"skuId": second_sku_a.id, "outgoingQuantity": 2, "unitPrice": 10},
            ],
        )
        draft = outgoing_body(stocked_a, status="draft", invoiceChallanDate="2024-04-20", invoiceChallanNumber="SI-003")
        ids = [client.post(BASE, json=body, headers=headers_a).json["data"]["id"] for body in (first, second, draft)]
        return ids

    def test_list_with_sums_newest_first(self, client, headers_a, dispatched):
        response = client.get(BASE, headers=headers_a)

        assert response.status_code == 200
        rows = response.json["data"]
        assert [row["id"] for row in rows] == list(reversed(dispatched))
        assert rows[1]["totalQuantitySum"] == 5
        assert rows[1]["totalValueSum"] == 50.0
        assert rows[1]["itemCount"] == 2
        assert response.json["limit"] == 100
        assert response.json["offset"] == 0

    def test_list_filters(self, client, headers_a, dispatched):
        by_status = client.get(f"{BASE}?status=draft", headers=headers_a).json["data"]
        by_date = client.get(f"{BASE}?dateFrom=2024-04-10&dateTo=2024-04-16", headers=headers_a).json["data"]
        by_destination = client.get(f"{BASE}?destination=rao", headers=headers_a).json["data"]

        assert [row["id"] for row in by_status] == [dispatched[2]]
        assert [row["id"] for row in by_date] == [dispatched[1]]
        assert [row["id"] for row in by_destination] == [dispatched[1]]

    def test_list_rejects_unknown_status(self, client, headers_a, dispatched):
        assert client.get(f"{BASE}?status=shipped", headers=headers_a).status_code == 400

    def test_history_lists_completed_lines(self, client, headers_a, dispatched):
        response = client.get(f"{BASE}/history", headers=headers_a)

        assert response.status_code == 200
        rows = response.json["data"]
        assert [(row["recordId"], row["skuCode"]) for row in rows] == [
            (dispatched[1], "ACMEAASKU00001"),
            (dispatched[1], "ACMEAASKU00002"),
            (dispatched[0], "ACMEAASKU00001"),
        ]
        assert rows[0]["documentNumber"] == "DK-9"
        assert rows[0]["destination"] == "Rao Electricals"
        assert rows[2]["documentNumber"] == "SI-001"
        assert rows[2]["totalValueInclGst"] == 236.0

    def test_history_sku_filter(self, client, headers_a, dispatched):
        rows = client.get(f"{BASE}/history?sku=00002", headers=headers_a).json["data"]

        assert [row["skuCode"] for row in rows] == ["ACMEAASKU00002"]

    def test_get_by_id(self, client, headers_a, dispatched):
        response = client.get(f"{BASE}/{dispatched[1]}", headers=headers_a)

        assert response.status_code == 200
        assert len(response.json["data"]["items"]) == 2

    def test_unknown_id(self, client, headers_a, dispatched):
        response = client.get(f"{BASE}/99999", headers=headers_a)

        assert response.status_code == 404
        assert response.json["error"] == "Outgoing inventory record not found"


class TestTenantIsolation:
    def test_other_company_cannot_see_or_delete(self, client, headers_a, headers_b, stocked_a):
        created = client.post(BASE, json=outgoing_body(stocked_a), headers=headers_a).json["data"]

        assert client.get(f"{BASE}/{created['id']}", headers=headers_b).status_code == 404
        assert client.delete(f"{BASE}/{created['id']}", headers=headers_b).status_code == 404
        assert client.get(BASE, headers=headers_b).json["data"] == []
        assert client.get(f"{BASE}/history", headers=headers_b).json["data"] == []
        assert _stock(stocked_a["sku"].id) == 40

    def test_mismatched_company_header(self, client, headers_a, stocked_a):
        headers = dict(headers_a, **{"x-company-id": "BETABB"})

        assert client.get(BASE, headers=headers).status_code == 403
