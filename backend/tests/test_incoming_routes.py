# Overview: Pytest coverage for the incoming inventory HTTP workflow.

"""
Incoming Inventory Route Tests

Drives the reconciliation workflow end to end through the Flask client:
create -> move received/short to rejected -> point updates -> status.

Scenario used throughout: 100 ordered, 90 received at 12.50 + 18% GST.
"""

import pytest
from sqlalchemy import update

from stockroom.extensions import db
from stockroom.models import IncomingInventory, IncomingInventoryItem, PriceHistory, RejectedItemReport, SKU
from stockroom.services import incoming_service, price_history_service

from conftest import incoming_body


BASE = "/api/inventory/incoming"


@pytest.fixture
def receipt(client, headers_a, library_a):
    """Create the 100/90 receipt and return (incoming_id, item_id)."""
    response = client.post(BASE, json=incoming_body(library_a), headers=headers_a)
    assert response.status_code == 201, response.json
    data = response.json["data"]
    return data["id"], data["items"][0]["id"]


def _items(client, headers, incoming_id):
    response = client.get(f"{BASE}/{incoming_id}/items", headers=headers)
    assert response.status_code == 200
    return response.json["data"]


class TestCreateIncoming:
    def test_create_computes_short_and_totals(self, client, headers_a, library_a):
        response = client.post(BASE, json=incoming_body(library_a), headers=headers_a)

        assert response.status_code == 201
        body = response.json
        assert body["success"] is True
        header = body["data"]
        assert header["status"] == "draft"
        assert header["totalValue"] == 1475.0
        assert header["vendorName"] == "Acme Vendor"

        item = header["items"][0]
        assert item["totalQuantity"] == 100
        assert item["received"] == 90
        assert item["short"] == 10
        assert item["rejected"] == 0
        assert item["initialShort"] == 10
        assert item["received"] + item["short"] == item["totalQuantity"]
        assert item["gstPercentage"] == 18.0
        assert item["totalValueExclGst"] == 1250.0
        assert item["totalValueInclGst"] == 1475.0

    def test_client_short_is_ignored(self, client, headers_a, library_a):
        body = incoming_body(library_a)
        body["items"][0]["short"] = 50

        response = client.post(BASE, json=body, headers=headers_a)

        assert response.status_code == 201
        assert response.json["data"]["items"][0]["short"] == 10

    def test_round_trip_returns_same_quantities(self, client, headers_a, library_a, second_sku_a):
        items = [
            {"skuId": library_a["sku"].id, "totalQuantity": 100, "received": 90, "unitPrice": 10},
            {"skuId": second_sku_a.id, "totalQuantity": 7, "unitPrice": "3.25"},
        ]
        created = client.post(BASE, json=incoming_body(library_a, items=items), headers=headers_a)
        assert created.status_code == 201

        fetched = _items(client, headers_a, created.json["data"]["id"])
        pairs = [(i["skuId"], i["totalQuantity"], i["received"], i["short"]) for i in fetched]
        assert pairs == [
            (library_a["sku"].id, 100, 90, 10),
            (second_sku_a.id, 7, 7, 0),
        ]

    @pytest.mark.parametrize("field", ["invoiceNumber", "invoiceDate", "receivingDate", "vendorId", "brandId"])
    def test_missing_header_field(self, client, headers_a, library_a, field):
        body = incoming_body(library_a)
        del body[field]

        response = client.post(BASE, json=body, headers=headers_a)

        assert response.status_code == 400
        assert response.json["success"] is False

    def test_empty_items_rejected(self, client, headers_a, library_a):
        response = client.post(BASE, json=incoming_body(library_a, items=[]), headers=headers_a)
        assert response.status_code == 400

    def test_non_numeric_quantity_rejected(self, client, headers_a, library_a):
        items = [{"skuId": library_a["sku"].id, "totalQuantity": "lots", "unitPrice": 1}]
        response = client.post(BASE, json=incoming_body(library_a, items=items), headers=headers_a)
        assert response.status_code == 400

    def test_received_above_total_rolls_back(self, client, headers_a, library_a):
        items = [{"skuId": library_a["sku"].id, "totalQuantity": 10, "received": 11, "unitPrice": 1}]

        response = client.post(BASE, json=incoming_body(library_a, items=items), headers=headers_a)

        assert response.status_code == 400
        assert db.session.query(IncomingInventoryItem).count() == 0

    def test_duplicate_sku_in_one_receipt(self, client, headers_a, library_a):
        line = {"skuId": library_a["sku"].id, "totalQuantity": 1, "unitPrice": 1}
        response = client.post(BASE, json=incoming_body(library_a, items=[line, dict(line)]), headers=headers_a)
        assert response.status_code == 400

    def test_foreign_sku_rejected(self, client, headers_a, library_a, library_b):
        items = [{"skuId": library_b["sku"].id, "totalQuantity": 1, "unitPrice": 1}]
        response = client.post(BASE, json=incoming_body(library_a, items=items), headers=headers_a)
        assert response.status_code == 400

    @pytest.mark.parametrize("field,value", [("status", 1), ("warrantyUnit", 3)])
    def test_non_text_status_fields_rejected(self, client, headers_a, library_a, field, value):
        body = incoming_body(library_a)
        body[field] = value

        response = client.post(BASE, json=body, headers=headers_a)

        assert response.status_code == 400
        assert response.json["success"] is False
        assert db.session.query(IncomingInventoryItem).count() == 0

    def test_body_must_be_an_object(self, client, headers_a, library_a):
        response = client.post(BASE, json=[1, 5], headers=headers_a)
        assert response.status_code == 400


class TestMoves:
    def test_scenario(self, client, headers_a, receipt):
        incoming_id, item_id = receipt

        moved = client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 5, "reason": "Damaged"},
            headers=headers_a,
        )
        assert moved.status_code == 200, moved.json
        assert moved.json["reportCreated"] is True
        item = moved.json["data"]["item"]
        assert (item["received"], item["short"], item["rejected"]) == (85, 10, 5)
        report = moved.json["data"]["report"]
        assert report["reportNumber"] == "REJ/INV-100/001"
        assert report["quantity"] == 5
        assert report["netRejected"] == 5
        assert report["reason"] == "Damaged"
        assert db.session.query(RejectedItemReport).count() == 1

        short_moved = client.post(
            f"{BASE}/{incoming_id}/move-to-rejected",
            json={"itemId": item_id, "quantity": 3},
            headers=headers_a,
        )
        assert short_moved.status_code == 200
        data = short_moved.json["data"]
        assert (data["received"], data["short"], data["rejected"]) == (85, 7, 8)
        # No report for short moves
        assert db.session.query(RejectedItemReport).count() == 1

    def test_over_move_leaves_state_unchanged(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 5},
            headers=headers_a,
        )

        response = client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 999},
            headers=headers_a,
        )

        assert response.status_code == 400
        item = _items(client, headers_a, incoming_id)[0]
        assert (item["received"], item["short"], item["rejected"]) == (85, 10, 5)
        assert db.session.query(RejectedItemReport).count() == 1

    def test_short_over_move_rejected(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        response = client.post(
            f"{BASE}/{incoming_id}/move-to-rejected",
            json={"itemId": item_id, "quantity": 11},
            headers=headers_a,
        )
        assert response.status_code == 400
        assert _items(client, headers_a, incoming_id)[0]["short"] == 10

    def test_short_move_defaults_to_all(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        response = client.post(f"{BASE}/{incoming_id}/move-to-rejected", json={"itemId": item_id}, headers=headers_a)
        assert response.status_code == 200
        assert response.json["data"]["short"] == 0
        assert response.json["data"]["rejected"] == 10

    def test_report_sequence_increases(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        numbers = []
        for _ in range(2):
            response = client.post(
                f"{BASE}/{incoming_id}/move-received-to-rejected",
                json={"itemId": item_id, "quantity": 1},
                headers=headers_a,
            )
            numbers.append(response.json["data"]["report"]["reportNumber"])
        assert numbers == ["REJ/INV-100/001", "REJ/INV-100/002"]

    def test_reason_too_long(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        response = client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 1, "reason": "x" * 31},
            headers=headers_a,
        )
        assert response.status_code == 400
        assert _items(client, headers_a, incoming_id)[0]["received"] == 90

    def test_unknown_item(self, client, headers_a, receipt):
        incoming_id, _ = receipt
        response = client.post(
            f"{BASE}/{incoming_id}/move-to-rejected",
            json={"itemId": 99999, "quantity": 1},
            headers=headers_a,
        )
        assert response.status_code == 404

    def test_list_body_rejected(self, client, headers_a, receipt):
        incoming_id, _ = receipt
        response = client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json=[1, 5],
            headers=headers_a,
        )
        assert response.status_code == 400
        assert response.json["error"] == "Invalid JSON payload"

    def test_received_taken_between_read_and_update(self, client, headers_a, receipt, monkeypatch):
        incoming_id, item_id = receipt
        original_plan = incoming_service.plan_received_move

        def plan_then_lose_units(before, quantity):
            planned = original_plan(before, quantity)
            # Another transaction commits first and leaves only 2 received units
            db.session.execute(
                update(IncomingInventoryItem)
                .where(IncomingInventoryItem.id == item_id)
                .values(received=2)
            )
            db.session.commit()
            return planned

        monkeypatch.setattr(incoming_service, "plan_received_move", plan_then_lose_units)

        response = client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 5},
            headers=headers_a,
        )

        assert response.status_code == 400
        monkeypatch.undo()
        item = _items(client, headers_a, incoming_id)[0]
        assert (item["received"], item["short"], item["rejected"]) == (2, 10, 0)
        assert db.session.query(RejectedItemReport).count() == 0

    def test_report_numbers_continue_past_999(self, client, headers_a, receipt):
        incoming_id, item_id = receipt

        def move_one():
            response = client.post(
                f"{BASE}/{incoming_id}/move-received-to-rejected",
                json={"itemId": item_id, "quantity": 1},
                headers=headers_a,
            )
            assert response.status_code == 200, response.json
            return response.json["data"]["report"]["reportNumber"]

        move_one()
        report = db.session.query(RejectedItemReport).one()
        report.report_number = "REJ/INV-100/999"
        db.session.commit()

        # Sequence is compared as a number, not as text
        assert move_one() == "REJ/INV-100/1000"
        assert move_one() == "REJ/INV-100/1001"


class TestPointUpdates:
    @pytest.mark.parametrize("path", ["update-short-item", "update-item-rejected-short", "short"])
    def test_received_cannot_be_updated(self, client, headers_a, receipt, path):
        incoming_id, item_id = receipt

        response = client.put(
            f"{BASE}/{incoming_id}/{path}",
            json={"itemId": item_id, "received": 50, "short": 2},
            headers=headers_a,
        )

        assert response.status_code == 400
        item = _items(client, headers_a, incoming_id)[0]
        assert (item["received"], item["short"], item["rejected"]) == (90, 10, 0)

    def test_update_short_item_with_challan(self, client, headers_a, receipt):
        incoming_id, item_id = receipt

        response = client.put(
            f"{BASE}/{incoming_id}/update-short-item",
            json={"itemId": item_id, "short": 4, "challanNumber": "CH-9", "challanDate": "2024-03-10"},
            headers=headers_a,
        )

        assert response.status_code == 200
        item = response.json["data"]
        assert item["short"] == 4
        assert item["received"] == 90
        assert item["challanNumber"] == "CH-9"
        assert item["challanDate"] == "2024-03-10"

    def test_update_rejected_short_bounds(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        response = client.put(
            f"{BASE}/{incoming_id}/update-item-rejected-short",
            json={"itemId": item_id, "short": 10, "rejected": 5},
            headers=headers_a,
        )
        assert response.status_code == 400

    def test_update_requires_a_field(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        response = client.put(
            f"{BASE}/{incoming_id}/update-item-rejected-short",
            json={"itemId": item_id},
            headers=headers_a,
        )
        assert response.status_code == 400

    def test_update_short_batch_and_invoice(self, client, headers_a, receipt):
        incoming_id, item_id = receipt

        response = client.put(
            f"{BASE}/{incoming_id}/short",
            json={"items": [{"itemId": item_id, "short": 6}], "invoiceNumber": "INV-100A"},
            headers=headers_a,
        )

        assert response.status_code == 200
        header = response.json["data"]
        assert header["invoiceNumber"] == "INV-100A"
        assert header["items"][0]["short"] == 6


class TestStatus:
    def _set_status(self, client, headers, incoming_id, status):
        return client.put(f"{BASE}/{incoming_id}/status", json={"status": status}, headers=headers)

    def test_complete_credits_stock_and_price_history(self, client, headers_a, library_a, receipt):
        incoming_id, item_id = receipt
        sku_id = library_a["sku"].id

        response = self._set_status(client, headers_a, incoming_id, "completed")

        assert response.status_code == 200
        assert response.json["data"]["status"] == "completed"
        assert db.session.get(SKU, sku_id).current_stock == 90

        history = client.get(f"/api/skus/{sku_id}/price-history", headers=headers_a).json["data"]
        assert history["current"]["price"] == 12.5
        assert history["lowest"]["price"] == 12.5
        assert history["previous"] is None

    def test_price_history_failure_does_not_fail_completion(self, client, headers_a, library_a, receipt, monkeypatch):
        incoming_id, _ = receipt
        sku_id = library_a["sku"].id

        def broken(header):
            raise TypeError("price snapshot failed")

        monkeypatch.setattr(price_history_service, "update_price_history", broken)

        response = self._set_status(client, headers_a, incoming_id, "completed")

        assert response.status_code == 200, response.json
        assert response.json["data"]["status"] == "completed"
        assert db.session.get(IncomingInventory, incoming_id).status == "completed"
        assert db.session.get(SKU, sku_id).current_stock == 90
        assert db.session.query(PriceHistory).count() == 0

    def test_moves_after_completion_adjust_stock(self, client, headers_a, library_a, receipt):
        incoming_id, item_id = receipt
        sku_id = library_a["sku"].id
        self._set_status(client, headers_a, incoming_id, "completed")

        client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 5},
            headers=headers_a,
        )
        assert db.session.get(SKU, sku_id).current_stock == 85

        # 4 of the 10 short units arrive
        client.put(
            f"{BASE}/{incoming_id}/update-short-item",
            json={"itemId": item_id, "short": 6},
            headers=headers_a,
        )
        assert db.session.get(SKU, sku_id).current_stock == 89

    def test_invalid_transitions(self, client, headers_a, receipt):
        incoming_id, _ = receipt
        assert self._set_status(client, headers_a, incoming_id, "completed").status_code == 200
        assert self._set_status(client, headers_a, incoming_id, "cancelled").status_code == 409
        assert self._set_status(client, headers_a, incoming_id, "draft").status_code == 409

    def test_unknown_status(self, client, headers_a, receipt):
        incoming_id, _ = receipt
        assert self._set_status(client, headers_a, incoming_id, "shipped").status_code == 400

    def test_cancelled_receipt_is_frozen(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        self._set_status(client, headers_a, incoming_id, "cancelled")

        response = client.post(
            f"{BASE}/{incoming_id}/move-received-to-rejected",
            json={"itemId": item_id, "quantity": 1},
            headers=headers_a,
        )

        assert response.status_code == 409

    def test_create_completed(self, client, headers_a, library_a):
        response = client.post(BASE, json=incoming_body(library_a, status="completed"), headers=headers_a)
        assert response.status_code == 201
        assert response.json["data"]["status"] == "completed"
        assert db.session.get(SKU, library_a["sku"].id).current_stock == 90


class TestReadsAndDelete:
    def test_list_includes_sums(self, client, headers_a, receipt):
        response = client.get(BASE, headers=headers_a)

        assert response.status_code == 200
        row = response.json["data"][0]
        assert row["totalQuantity"] == 100
        assert row["received"] == 90
        assert row["short"] == 10
        assert row["itemCount"] == 1

    def test_list_filters(self, client, headers_a, library_a, receipt):
        assert client.get(f"{BASE}?status=completed", headers=headers_a).json["data"] == []
        assert len(client.get(f"{BASE}?dateFrom=2024-03-01&dateTo=2024-03-31", headers=headers_a).json["data"]) == 1
        assert client.get(f"{BASE}?dateFrom=2024-04-01", headers=headers_a).json["data"] == []
        assert client.get(f"{BASE}?dateFrom=soon", headers=headers_a).status_code == 400

    def test_history_lists_completed_only(self, client, headers_a, receipt):
        incoming_id, _ = receipt
        assert client.get(f"{BASE}/history", headers=headers_a).json["data"] == []

        client.put(f"{BASE}/{incoming_id}/status", json={"status": "completed"}, headers=headers_a)
        rows = client.get(f"{BASE}/history?sku=Widget", headers=headers_a).json["data"]

        assert len(rows) == 1
        assert rows[0]["status"] == "Pending"
        assert rows[0]["totalShort"] == 10
        assert rows[0]["totalValueInclGst"] == 1475.0

    def test_delete_completed_returns_stock(self, client, headers_a, library_a, receipt):
        incoming_id, _ = receipt
        client.put(f"{BASE}/{incoming_id}/status", json={"status": "completed"}, headers=headers_a)

        response = client.delete(f"{BASE}/{incoming_id}", headers=headers_a)

        assert response.status_code == 200
        assert db.session.get(SKU, library_a["sku"].id).current_stock == 0
        assert client.get(f"{BASE}/{incoming_id}", headers=headers_a).status_code == 404
