import io
import math

import pytest

from erp.services.products_service import catalogue_summary, margin_percentage, stock_level
from erp.validation import NotFoundError, ValidationError


CSV_HEADER = "name,code,fabricType,size,color,purchaseCost,minSalePrice,maxSalePrice,currentPrice,stock,minStock,supplier,batchInfo"


class TestPriceHistory:
    def test_create_writes_first_entry(self, services, product):
        history = services.products.get_price_history(product["id"])
        assert len(history) == 1
        assert history[0]["currentPrice"] == 1000
        assert history[0]["purchaseCost"] == 600

    def test_price_change_appends_entry(self, services, product):
        services.products.update_product(product["id"], {"currentPrice": 1100})
        history = services.products.get_price_history(product["id"])
        assert len(history) == 2
        assert history[-1]["currentPrice"] == 1100
        assert history[-1]["minSalePrice"] == 800

    def test_non_price_change_leaves_history_alone(self, services, product):
        services.products.update_product(product["id"], {"currentPrice": 1100})
        services.products.update_product(product["id"], {"name": "Cotton Kurta (Blue)"})
        services.products.update_product(product["id"], {"currentPrice": 1100})
        assert len(services.products.get_price_history(product["id"])) == 2

    def test_history_is_deleted_with_product(self, services, product):
        services.products.delete_product(product["id"])
        with pytest.raises(NotFoundError):
            services.products.get_price_history(product["id"])
        assert services.products._history(product["id"]).all() == []


class TestProductRules:
    def test_min_price_above_max_is_rejected(self, services):
        with pytest.raises(ValidationError, match="minSalePrice cannot exceed maxSalePrice"):
            services.products.create_product({
                "name": "X", "code": "X1", "currentPrice": 100,
                "minSalePrice": 200, "maxSalePrice": 150,
            })

    def test_rule_checks_merged_record_on_update(self, services, product):
        with pytest.raises(ValidationError):
            services.products.update_product(product["id"], {"minSalePrice": 1500})

    def test_unknown_field_is_rejected(self, services, product):
        with pytest.raises(ValidationError, match="Field not allowed: id"):
            services.products.update_product(product["id"], {"id": "other"})

    def test_negative_stock_is_rejected(self, services):
        with pytest.raises(ValidationError, match="stock must be >= 0"):
            services.products.create_product({"name": "X", "code": "X1", "currentPrice": 1, "stock": -1})

    def test_required_fields(self, services):
        with pytest.raises(ValidationError, match="Missing required fields: code, currentPrice"):
            services.products.create_product({"name": "X"})

    def test_defaults_are_applied(self, services):
        created = services.products.create_product({"name": "X", "code": "X1", "currentPrice": "1,250"})
        assert created["currentPrice"] == 1250
        assert created["status"] == "active"
        assert created["stock"] == 0
        assert created["createdDate"]


def test_product_metrics(product):
    assert margin_percentage(product) == 67
    assert margin_percentage({"currentPrice": 100}) == 0
    assert stock_level(3) == "critical"
    assert stock_level(10) == "low"
    assert stock_level(11) == "good"


def test_catalogue_summary(product, second_product):
    summary = catalogue_summary([product, second_product])
    assert summary["total_products"] == 2
    assert summary["stock_value"] == 12000
    assert summary["low_stock"] == 2


def test_list_products_search(services, product, second_product):
    assert [p["name"] for p in services.products.list_products()] == ["Cotton Kurta", "Silk Dupatta"]
    assert [p["code"] for p in services.products.list_products(search="sd-")] == ["SD-002"]


class TestCsvImport:
    def test_import_creates_products_and_keeps_nan(self, services):
        text = "\ufeff" + CSV_HEADER + "\n" + "\n".join([
            "Lawn Suit,LS-1,Lawn,M,Red,1200,1500,2000,1800,12,3,Gul Ahmed,B-7",
            "Khaddar Shawl,KS-2,Khaddar,,,abc,,,950,5,1,,",
            ",,,,,,,,,,,,",
        ])

        ids = services.products.import_csv(text)

        assert len(ids) == 2
        lawn = services.products.get_product(ids[0])
        assert lawn["currentPrice"] == 1800
        assert lawn["stock"] == 12
        assert lawn["supplier"] == "Gul Ahmed"

        shawl = services.products.get_product(ids[1])
        assert math.isnan(shawl["purchaseCost"])
        assert shawl["currentPrice"] == 950

    def test_missing_columns_are_reported(self, services):
        with pytest.raises(ValidationError, match="CSV is missing columns: batchInfo"):
            services.products.import_csv(CSV_HEADER.replace(",batchInfo", "") + "\nA,B,,,,1,1,1,1,1,1,")

    def test_import_route(self, client, headers):
        body = CSV_HEADER + "\nLawn Suit,LS-1,Lawn,M,Red,1200,1500,2000,1800,12,3,Gul Ahmed,B-7\n"
        response = client.post(
            "/api/products/import",
            data={"file": (io.BytesIO(body.encode("utf-8")), "products.csv")},
            headers=headers,
            content_type="multipart/form-data",
        )
        assert response.status_code == 201
        assert response.json["created"] == 1

        listing = client.get("/api/products", headers=headers)
        assert listing.json["products"][0]["marginPercentage"] == 50
        assert listing.json["products"][0]["stockLevel"] == "good"

    def test_empty_upload(self, client, headers):
        response = client.post("/api/products/import", data=b"", headers=headers)
        assert response.status_code == 400


def test_product_routes_crud(client, headers):
    response = client.post("/api/products", json={"name": "Chiffon", "code": "CH-1", "currentPrice": 700}, headers=headers)
    assert response.status_code == 201
    product_id = response.json["product"]["id"]

    response = client.patch(f"/api/products/{product_id}", json={"currentPrice": 750}, headers=headers)
    assert response.status_code == 200
    assert response.json["product"]["currentPrice"] == 750

    history = client.get(f"/api/products/{product_id}/history", headers=headers)
    assert len(history.json["history"]) == 2

    response = client.post("/api/products", json={"name": "Bad"}, headers=headers)
    assert response.status_code == 400

    assert client.delete(f"/api/products/{product_id}", headers=headers).status_code == 200
    assert client.get(f"/api/products/{product_id}", headers=headers).status_code == 404
