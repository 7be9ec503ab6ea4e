# Overview: Pytest coverage for rejected and short item reports.

"""
Report Tests

Rejected item reports:
- numbered REJ/<invoice>/<seq> per company, never reused after delete
- dispositions recompute netRejected and cannot exceed the quantity

Short item reports:
- one per line that started short; status follows later arrivals
"""

import pytest

from stockroom.services import rejected_report_service

from conftest import auth_headers, incoming_body, token_for


INCOMING = "/api/inventory/incoming"
REJECTED = "/api/inventory/rejected-item-reports"
SHORT = "/api/inventory/short-item-reports"


@pytest.fixture
def receipt(client, headers_a, library_a):
    response = client.post(INCOMING, json=incoming_body(library_a), headers=headers_a)
    data = response.json["data"]
    return data["id"], data["items"][0]["id"]


def _reject(client, headers, incoming_id, item_id, quantity, **extra):
    body = {"itemId": item_id, "quantity": quantity, **extra}
    response = client.post(f"{INCOMING}/{incoming_id}/move-received-to-rejected", json=body, headers=headers)
    assert response.status_code == 200, response.json
    return response.json["data"]["report"]


class TestReportNumbering:
    def test_first_number(self, db_session, company_a):
        assert rejected_report_service.next_report_number(
            company_id="ACMEAA", invoice_number="INV-7"
        ) == "REJ/INV-7/001"

    def test_deleted_reports_still_count(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        first = _reject(client, headers_a, incoming_id, item_id, 2)

        assert client.delete(f"{REJECTED}/{first['id']}", headers=headers_a).status_code == 200

        second = _reject(client, headers_a, incoming_id, item_id, 1)
        assert second["reportNumber"] == "REJ/INV-100/002"

    def test_invoices_are_numbered_independently(self, client, headers_a, library_a, receipt):
        incoming_id, item_id = receipt
        _reject(client, headers_a, incoming_id, item_id, 1)

        other = client.post(INCOMING, json=incoming_body(library_a, invoice="INV-200"), headers=headers_a).json["data"]
        report = _reject(client, headers_a, other["id"], other["items"][0]["id"], 1)

        assert report["reportNumber"] == "REJ/INV-200/001"

    def test_invoice_with_like_wildcards(self, client, headers_a, library_a):
        created = client.post(INCOMING, json=incoming_body(library_a, invoice="A_1%"), headers=headers_a).json["data"]
        report = _reject(client, headers_a, created["id"], created["items"][0]["id"], 1)
        assert report["reportNumber"] == "REJ/A_1%/001"


class TestRejectedReports:
    def test_list_get_and_search(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        report = _reject(client, headers_a, incoming_id, item_id, 5, inspectionDate="2024-03-04")

        listed = client.get(REJECTED, headers=headers_a).json
        assert listed["total"] == 1
        assert listed["data"][0]["reportNumber"] == "REJ/INV-100/001"
        assert listed["data"][0]["vendorName"] == "Acme Vendor"

        fetched = client.get(f"{REJECTED}/{report['id']}", headers=headers_a).json["data"]
        assert fetched["inspectionDate"] == "2024-03-04"
        assert fetched["status"] == "Pending"

        assert client.get(f"{REJECTED}?search=INV-100", headers=headers_a).json["total"] == 1
        assert client.get(f"{REJECTED}?search=nothing", headers=headers_a).json["total"] == 0
        assert client.get(f"{REJECTED}?dateFrom=2024-03-05", headers=headers_a).json["total"] == 0

    def test_update_dispositions(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        report = _reject(client, headers_a, incoming_id, item_id, 5)

        response = client.put(
            f"{REJECTED}/{report['id']}",
            json={"sentToVendor": 2, "receivedBack": 1, "scrapped": 1, "status": "Sent to vendor"},
            headers=headers_a,
        )

        assert response.status_code == 200
        data = response.json["data"]
        assert data["netRejected"] == 1
        assert data["status"] == "Sent to vendor"

    def test_dispositions_cannot_exceed_quantity(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        report = _reject(client, headers_a, incoming_id, item_id, 5)

        response = client.put(
            f"{REJECTED}/{report['id']}",
            json={"sentToVendor": 4, "scrapped": 2},
            headers=headers_a,
        )

        assert response.status_code == 400
        assert client.get(f"{REJECTED}/{report['id']}", headers=headers_a).json["data"]["netRejected"] == 5

    def test_unknown_field_rejected(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        report = _reject(client, headers_a, incoming_id, item_id, 5)
        response = client.put(f"{REJECTED}/{report['id']}", json={"quantity": 50}, headers=headers_a)
        assert response.status_code == 400

    def test_deleted_report_is_hidden(self, client, headers_a, receipt):
        incoming_id, item_id = receipt
        report = _reject(client, headers_a, incoming_id, item_id, 5)

        client.delete(f"{REJECTED}/{report['id']}", headers=headers_a)

        assert client.get(f"{REJECTED}/{report['id']}", headers=headers_a).status_code == 404
        assert client.get(REJECTED, headers=headers_a).json["total"] == 0

    def test_delete_requires_admin(self, client, plain_user_a, receipt):
        incoming_id, item_id = receipt
        headers = auth_headers(token_for(plain_user_a), "ACMEAA")
        report = _reject(client, headers, incoming_id, item_id, 1)

        assert client.delete(f"{REJECTED}/{report['id']}", headers=headers).status_code == 403


class TestShortReports:
    def test_pending_short(self, client, headers_a, receipt):
        _, item_id = receipt

        rows = client.get(SHORT, headers=headers_a).json["data"]

        assert len(rows) == 1
        row = rows[0]
        assert row["id"] == item_id
        assert row["shortQuantity"] == 10
        assert row["receivedBack"] == 0
        assert row["netRejected"] == 10
        assert row["status"] == "Pending"
        assert row["invoiceNumber"] == "INV-100"

    def test_partial_and_full_arrival(self, client, headers_a, receipt):
        incoming_id, item_id = receipt

        client.put(f"{INCOMING}/{incoming_id}/update-short-item", json={"itemId": item_id, "short": 4}, headers=headers_a)
        partial = client.get(f"{SHORT}/{item_id}", headers=headers_a).json["data"]
        assert partial["receivedBack"] == 6
        assert partial["netRejected"] == 4
        assert partial["status"] == "Partially Received"

        client.put(f"{INCOMING}/{incoming_id}/update-short-item", json={"itemId": item_id, "short": 0}, headers=headers_a)
        full = client.get(f"{SHORT}/{item_id}", headers=headers_a).json["data"]
        assert full["shortQuantity"] == 10
        assert full["status"] == "Received Back"

    def test_lines_without_short_are_excluded(self, client, headers_a, library_a):
        items = [{"skuId": library_a["sku"].id, "totalQuantity": 10, "unitPrice": 1}]
        created = client.post(INCOMING, json=incoming_body(library_a, items=items), headers=headers_a).json["data"]

        assert client.get(SHORT, headers=headers_a).json["data"] == []
        assert client.get(f"{SHORT}/{created['items'][0]['id']}", headers=headers_a).status_code == 404
