# Overview: Pytest coverage for SKU, library master data and bulk import routes.

"""
SKU & Library Tests

- sku_code is company_id + 8 random characters
- list filters (search, category, brand, stock status) and paging totals
- deletes are soft and need an admin role
- bulk import resolves header aliases once per file and reports row errors
"""

import io

import pytest
from openpyxl import Workbook

from stockroom.errors import ConflictError, ValidationError
from stockroom.models import ItemCategory, ProductCategory, SKU
from stockroom.services import sku_import_service, sku_service

from conftest import auth_headers, token_for


class TestSkuRoutes:
    def test_create_sku_generates_code(self, client, headers_a, library_a):
        response = client.post("/api/skus", json={
            "itemName": "Acme Cable",
            "productCategoryId": library_a["category"].id,
            "brandId": library_a["brand"].id,
            "hsnSacCode": "8544",
        }, headers=headers_a)

        assert response.status_code == 201, response.json
        data = response.json["data"]
        assert len(data["skuCode"]) == 14
        assert data["skuCode"].startswith("ACMEAA")
        assert data["skuCode"][6:].isalnum()
        assert data["unit"] == "Pcs"
        assert data["currentStock"] == 0
        assert data["brandName"] == "Acme Brand"

    def test_current_stock_is_not_writable(self, client, headers_a, library_a):
        response = client.post("/api/skus", json={"itemName": "Cheat", "currentStock": 500}, headers=headers_a)
        assert response.status_code == 400

    def test_foreign_category_rejected(self, client, headers_a, library_a, library_b):
        response = client.post("/api/skus", json={
            "itemName": "Acme Cable",
            "productCategoryId": library_b["category"].id,
        }, headers=headers_a)
        assert response.status_code == 400

    def test_sku_code_generation_gives_up(self, db_session, library_a):
        with pytest.raises(ConflictError):
            sku_service.generate_unique_sku_code("ACMEAA", generator=lambda company_id: "ACMEAASKU00001")

    def test_list_filters_and_total(self, client, db_session, headers_a, library_a, second_sku_a):
        second_sku_a.current_stock = 20
        second_sku_a.min_stock_level = 5
        db_session.commit()

        everything = client.get("/api/skus?limit=1", headers=headers_a).json
        assert everything["total"] == 2
        assert len(everything["data"]) == 1
        assert everything["limit"] == 1

        search = client.get("/api/skus?search=gadget", headers=headers_a).json["data"]
        assert [s["itemName"] for s in search] == ["Acme Gadget"]

        by_brand = client.get(f"/api/skus?brandId={library_a['brand'].id}", headers=headers_a).json["data"]
        assert [s["itemName"] for s in by_brand] == ["Acme Widget"]

        out = client.get("/api/skus?stockStatus=out", headers=headers_a).json["data"]
        assert [s["itemName"] for s in out] == ["Acme Widget"]
        in_stock = client.get("/api/skus?stockStatus=in", headers=headers_a).json["data"]
        assert [s["itemName"] for s in in_stock] == ["Acme Gadget"]

        assert client.get("/api/skus?stockStatus=bogus", headers=headers_a).status_code == 400

    def test_delete_requires_admin_and_is_soft(self, client, db_session, headers_a, plain_user_a, library_a):
        sku_id = library_a["sku"].id
        clerk = auth_headers(token_for(plain_user_a), "ACMEAA")

        assert client.delete(f"/api/skus/{sku_id}", headers=clerk).status_code == 403
        assert client.delete(f"/api/skus/{sku_id}", headers=headers_a).status_code == 200
        assert client.get(f"/api/skus/{sku_id}", headers=headers_a).status_code == 404
        assert db_session.get(SKU, sku_id).is_active is False

    def test_price_history_empty(self, client, headers_a, library_a):
        response = client.get(f"/api/skus/{library_a['sku'].id}/price-history", headers=headers_a)
        assert response.status_code == 200
        assert response.json["data"] == {"current": None, "previous": None, "lowest": None}


class TestLibraryRoutes:
    def test_vendor_create_list_delete(self, client, headers_a, library_a):
        created = client.post("/api/library/vendors", json={
            "name": "Zenith Supply", "gstNumber": "29zzzzz9999z1z9", "contactPerson": "Ravi",
        }, headers=headers_a)
        assert created.status_code == 201
        assert created.json["data"]["gstNumber"] == "29ZZZZZ9999Z1Z9"

        duplicate = client.post("/api/library/vendors", json={"name": "zenith supply"}, headers=headers_a)
        assert duplicate.status_code == 409

        names = [v["name"] for v in client.get("/api/library/vendors?search=zen", headers=headers_a).json["data"]]
        assert names == ["Zenith Supply"]

        vendor_id = created.json["data"]["id"]
        assert client.delete(f"/api/library/vendors/{vendor_id}", headers=headers_a).status_code == 200
        names = [v["name"] for v in client.get("/api/library/vendors", headers=headers_a).json["data"]]
        assert names == ["Acme Vendor"]

    def test_brand_delete_requires_admin(self, client, headers_a, plain_user_a, library_a):
        clerk = auth_headers(token_for(plain_user_a), "ACMEAA")
        url = f"/api/library/brands/{library_a['brand'].id}"
        assert client.delete(url, headers=clerk).status_code == 403

    def test_category_hierarchy(self, client, headers_a, library_a):
        product_id = library_a["category"].id
        item = client.post("/api/library/item-categories", json={
            "name": "Cables", "productCategoryId": product_id,
        }, headers=headers_a)
        assert item.status_code == 201
        item_id = item.json["data"]["id"]

        sub = client.post("/api/library/sub-categories", json={
            "name": "HDMI", "itemCategoryId": item_id,
        }, headers=headers_a)
        assert sub.status_code == 201

        listed = client.get(f"/api/library/item-categories?productCategoryId={product_id}", headers=headers_a)
        assert [c["name"] for c in listed.json["data"]] == ["Cables"]
        subs = client.get(f"/api/library/sub-categories?itemCategoryId={item_id}", headers=headers_a)
        assert [c["name"] for c in subs.json["data"]] == ["HDMI"]

    def test_item_category_needs_own_parent(self, client, headers_a, library_a, library_b):
        response = client.post("/api/library/item-categories", json={
            "name": "Cables", "productCategoryId": library_b["category"].id,
        }, headers=headers_a)
        assert response.status_code == 404


class TestHeaderResolution:
    @pytest.mark.parametrize("header", ["Item Name *", "itemName", "item_name", "ITEM-NAME", "Name"])
    def test_item_name_aliases(self, header):
        mapping = sku_import_service.resolve_headers([header, "Category"])
        assert mapping["item_name"] == header
        assert mapping["product_category"] == "Category"

    def test_first_alias_in_table_order_wins(self):
        mapping = sku_import_service.resolve_headers(["Product Name", "Item Name", "Product Category"])
        assert mapping["item_name"] == "Item Name"

    def test_missing_required_column(self):
        with pytest.raises(ValidationError) as excinfo:
            sku_import_service.resolve_headers(["Item Name", "Brand"])
        assert excinfo.value.details["missing"] == ["product_category"]


class TestSkuImport:
    def test_json_rows_with_errors(self, client, db_session, headers_a, library_a):
        rows = [
            {"Item Name *": "Router", "Product Category *": "acme electronics", "Item Category": "Network",
             "Sub Category": "Wifi", "Brand": "ACME BRAND", "Opening Stock": "7"},
            {"Item Name *": "Switch", "Product Category *": "Networking", "Vendor": "Nobody Ltd"},
            {"Item Name *": "", "Product Category *": ""},
            {"Item Name *": "Modem", "Product Category *": "Networking", "Min Stock Level": "2.5"},
            {"Item Name *": "Hub", "Product Category *": "Networking", "Item Category": "network"},
        ]

        response = client.post("/api/skus/import", json={"rows": rows}, headers=headers_a)

        assert response.status_code == 201, response.json
        data = response.json["data"]
        assert [r["itemName"] for r in data["inserted"]] == ["Router", "Hub"]
        assert [e["row"] for e in data["errors"]] == [3, 5]
        assert data["errors"][0]["error"] == 'Vendor "Nobody Ltd" not found'
        assert data["totalRows"] == 5
        assert response.json["message"] == "Imported 2 of 5 rows"

        router = db_session.query(SKU).filter_by(item_name="Router").one()
        assert router.product_category_id == library_a["category"].id
        assert router.brand_id == library_a["brand"].id
        assert router.current_stock == 7

        # "Networking" created once; "Network" exists under each product category
        assert db_session.query(ProductCategory).filter_by(company_id="ACMEAA").count() == 2
        assert db_session.query(ItemCategory).filter_by(company_id="ACMEAA").count() == 2

    def test_missing_required_column_rejects_file(self, client, db_session, headers_a, library_a):
        response = client.post("/api/skus/import", json={"rows": [{"Item Name": "Router"}]}, headers=headers_a)
        assert response.status_code == 400
        assert db_session.query(SKU).count() == 1

    def test_nothing_inserted_is_200(self, client, headers_a, library_a):
        rows = [{"Item Name": "Router", "Product Category": "X", "Brand": "Unknown"}]
        response = client.post("/api/skus/import", json={"rows": rows}, headers=headers_a)
        assert response.status_code == 200
        assert response.json["data"]["inserted"] == []

    def test_csv_upload(self, client, db_session, headers_a, library_a):
        content = "\ufeffItem Name,Product Category,HSN Code,Unit\nCable,Accessories,8544,Mtr\n".encode("utf-8")
        response = client.post(
            "/api/skus/import",
            data={"file": (io.BytesIO(content), "skus.csv")},
            headers=headers_a,
            content_type="multipart/form-data",
        )

        assert response.status_code == 201, response.json
        cable = db_session.query(SKU).filter_by(item_name="Cable").one()
        assert cable.hsn_sac_code == "8544"
        assert cable.unit == "Mtr"

    def test_xlsx_upload(self, client, db_session, headers_a, library_a):
        wb = Workbook()
        ws = wb.active
        ws.append(["Item Name *", "Product Category *", "Min Stock Level", "Vendor"])
        ws.append(["Adapter", "Accessories", 4, "acme vendor"])
        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)

        response = client.post(
            "/api/skus/import",
            data={"file": (buffer, "skus.xlsx")},
            headers=headers_a,
            content_type="multipart/form-data",
        )

        assert response.status_code == 201, response.json
        adapter = db_session.query(SKU).filter_by(item_name="Adapter").one()
        assert adapter.min_stock_level == 4
        assert adapter.vendor_id == library_a["vendor"].id

    def test_unsupported_upload(self, client, headers_a, library_a):
        response = client.post(
            "/api/skus/import",
            data={"file": (io.BytesIO(b"hello"), "skus.txt")},
            headers=headers_a,
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
