"""Integration tests for stock, availability and catalog endpoints via TestClient."""

import pytest
from allocation.api import availability_router, catalog_router, register_error_handlers, stock_router, warehouse_router
from allocation.catalog import reset_catalog, set_catalog
from allocation.catalog.port import CatalogPort
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(stock_router)
    app.include_router(warehouse_router)
    app.include_router(availability_router)
    app.include_router(catalog_router)
    register_error_handlers(app)
    return TestClient(app)


def _set_stock(client, warehouse_id, quantity, product_id="P1", **extra):
    return client.put(
        "/stock",
        json={"warehouse_id": warehouse_id, "product_id": product_id, "stock_quantity": quantity, **extra},
    )


def _availability(client, pincode, product_id="P1", **params):
    response = client.get("/availability", params={"pincode": pincode, "product_id": product_id, **params})
    assert response.status_code == 200
    return response.json()


class TestStockEndpoints:
    def test_set_and_read_stock(self, client, w1_id, p1):
        response = _set_stock(client, w1_id, 10)
        assert response.status_code == 200
        assert response.json() == {"assignment_key": f"{w1_id}::P1::base", "removed": False}

        level = client.get(f"/stock/{w1_id}/P1").json()
        assert level["stock_quantity"] == 10

    def test_quantity_sent_as_string(self, client, w1_id, p1):
        assert _set_stock(client, w1_id, " 7 ").status_code == 200
        assert client.get(f"/stock/{w1_id}/P1").json()["stock_quantity"] == 7

    def test_empty_string_clears_stock(self, client, w1_id, p1):
        _set_stock(client, w1_id, 10)
        response = _set_stock(client, w1_id, "")
        assert response.json() == {"assignment_key": None, "removed": True}
        assert client.get(f"/stock/{w1_id}/P1").json()["stock_quantity"] == 0

    def test_non_numeric_quantity_rejected(self, client, w1_id, p1):
        assert _set_stock(client, w1_id, "lots").status_code == 422

    def test_unknown_warehouse_is_404(self, client, nationwide_id, p1):
        assert _set_stock(client, "no-such-warehouse", 5).status_code == 404

    def test_unknown_product_is_404(self, client, w1_id):
        assert _set_stock(client, w1_id, 5, product_id="P404").status_code == 404

    def test_variant_stock(self, client, w1_id, p1):
        _set_stock(client, w1_id, 3, variant_id="P1-RED")
        response = client.get(f"/stock/{w1_id}/P1", params={"variant_id": "P1-RED"})
        assert response.json()["stock_quantity"] == 3
        assert client.get(f"/stock/{w1_id}/P1").json()["stock_quantity"] == 0

    def test_warehouse_stock_and_summary(self, client, w1_id, p1):
        _set_stock(client, w1_id, 5, cost_per_unit=2.0)

        rows = client.get(f"/warehouses/{w1_id}/stock").json()
        assert [r["stock_quantity"] for r in rows] == [5]
        assert rows[0]["is_low_stock"] is True

        summary = client.get(f"/warehouses/{w1_id}/summary").json()
        assert summary["total_units"] == 5
        assert summary["inventory_value"] == 10.0
        assert summary["low_stock_count"] == 1


    def test_product_summary(self, client, w1_id, d1_id, p1):
        _set_stock(client, w1_id, 10)
        _set_stock(client, d1_id, 4, variant_id="P1-RED")

        summary = client.get("/stock/products/P1/summary").json()

        assert summary["total_units"] == 14
        assert summary["by_warehouse"] == {w1_id: 10, d1_id: 4}
        assert summary["by_variant"] == {"base": 10, "P1-RED": 4}

    def test_product_summary_unknown_product_is_404(self, client, nationwide_id):
        assert client.get("/stock/products/P404/summary").status_code == 404


class TestAvailabilityEndpoint:
    def test_division_only(self, client, w1_id, d1_id, p1):
        _set_stock(client, d1_id, 5)
        data = _availability(client, "400001")
        assert data == {
            "pincode": "400001",
            "product_id": "P1",
            "variant_id": None,
            "classification": "division_only",
            "pool": {d1_id: 5},
            "total": 5,
            "reason": None,
        }

    def test_zone_available(self, client, w1_id, d1_id, p1):
        _set_stock(client, w1_id, 10)
        _set_stock(client, d1_id, 5)
        data = _availability(client, " 400001")
        assert data["classification"] == "zone_available"
        assert data["pool"] == {w1_id: 10}

    def test_unknown_pincode_is_unavailable_not_an_error(self, client, w1_id, p1):
        data = _availability(client, "999999")
        assert data["classification"] == "unavailable"
        assert data["reason"] == "unknown_pincode"

    def test_unknown_product_is_unavailable(self, client, w1_id):
        assert _availability(client, "400001", product_id="P404")["reason"] == "unknown_product"

    def test_missing_query_parameter(self, client):
        assert client.get("/availability", params={"pincode": "400001"}).status_code == 422

    def test_batch_check(self, client, catalog, w1_id, d1_id, p1):
        catalog.add_product("P2")
        _set_stock(client, d1_id, 3, product_id="P2")

        response = client.post("/availability/batch", json={"pincode": " 400001 ", "product_ids": ["P1", "P2"]})

        assert response.status_code == 200
        body = response.json()
        assert body["pincode"] == "400001"
        by_product = {r["product_id"]: r for r in body["results"]}
        assert by_product["P1"]["reason"] == "out_of_stock"
        assert by_product["P2"]["classification"] == "division_only"
        assert by_product["P2"]["pool"] == {d1_id: 3}

    def test_batch_needs_products(self, client):
        assert client.post("/availability/batch", json={"pincode": "400001", "product_ids": []}).status_code == 422


class TestCatalogEndpoint:
    def test_register_product_then_stock_it(self, client, w1_id):
        response = client.post(
            "/catalog/products",
            json={"product_id": "P7", "delivery_type": "zonal", "variant_ids": ["P7-S"]},
        )
        assert response.status_code == 201
        assert response.json()["delivery_type"] == "zonal"
        assert _set_stock(client, w1_id, 4, product_id="P7").status_code == 200

    def test_blocked_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/catalog/products", json={"product_id": "P7"})
        assert response.status_code == 403

    def test_blocked_for_other_adapters(self, client):
        class ReadOnlyCatalog(CatalogPort):
            def product_exists(self, product_id, variant_id=None):
                return False

            def delivery_policy(self, product_id):
                return None

        set_catalog(ReadOnlyCatalog())
        try:
            response = client.post("/catalog/products", json={"product_id": "P7"})
            assert response.status_code == 400
        finally:
            reset_catalog()
