"""HTTP tests for the product endpoints."""

import uuid

import pytest

from catalog_api.dao.product_dao import product_dao

from tests.conftest import BASE_URL, PNG_BYTES

PRODUCTS = "/api/products"

MODEL_T = {"name": "Model T", "description": "classic", "category": "Car", "price": "1000"}


def png(name="model-t.png"):
    return (name, PNG_BYTES, "image/png")


def create(client, data=None, files=None):
    return client.post(PRODUCTS, data=data if data is not None else MODEL_T, files=files)


class TestCreate:

    def test_create_with_one_image(self, client, s3_client):
        response = create(client, files={"image": png()})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["product"]["price"] == 1000
        assert body["product"]["image"].startswith(f"{BASE_URL}/products/")
        assert body["product"]["image1"] == body["product"]["image"]
        assert "image2" not in body["product"]
        assert len(s3_client.objects) == 1

    def test_create_with_several_slots(self, client):
        response = create(client, files={"image1": png("a.png"), "image4": png("b.png")})

        product = response.json()["product"]
        assert response.status_code == 201
        assert product["image1"] and product["image4"]
        assert "image2" not in product

    def test_missing_category_is_listed(self, client):
        data = {k: v for k, v in MODEL_T.items() if k != "category"}

        response = create(client, data=data)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "category" in body["message"]
        assert body["details"]["missing_fields"] == ["category"]

    def test_invalid_category(self, client):
        response = create(client, data={**MODEL_T, "category": "Boaty"})

        assert response.status_code == 400
        assert "Invalid category" in response.json()["message"]

    def test_rejected_media_type_is_server_error(self, client, s3_client):
        response = create(client, files={"image": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert "Unsupported media type" in response.json()["message"]
        assert s3_client.objects == {}


class TestRead:

    def test_list_empty_store(self, client):
        response = client.get(PRODUCTS)

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "No products found"}

    def test_list_products(self, client):
        create(client)
        create(client, data={**MODEL_T, "name": "Harley", "category": "Bike"})

        response = client.get(PRODUCTS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert {p["name"] for p in body["products"]} == {"Model T", "Harley"}

    def test_get_by_id(self, client):
        created = create(client).json()["product"]

        response = client.get(f"{PRODUCTS}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["product"] == created

    def test_get_malformed_id(self, client):
        response = client.get(f"{PRODUCTS}/abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID format"

    def test_get_unknown_id(self, client):
        response = client.get(f"{PRODUCTS}/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"

    def test_request_id_header(self, client):
        response = client.get(f"{PRODUCTS}/abc")

        assert response.headers["X-Request-ID"]


class TestSearch:

    def test_search_is_case_insensitive(self, client):
        create(client, data={**MODEL_T, "name": "Car Deluxe"})
        create(client, data={**MODEL_T, "name": "Canoe", "description": "paddle", "category": "Boat"})

        response = client.get(f"{PRODUCTS}/search", params={"q": "car"})

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["products"]] == ["Car Deluxe"]

    def test_search_without_query(self, client):
        response = client.get(f"{PRODUCTS}/search")

        assert response.status_code == 400
        assert response.json()["message"] == "Search query is required"

    def test_search_without_match(self, client):
        create(client)

        response = client.get(f"{PRODUCTS}/search", params={"q": "hovercraft"})

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestUpdate:

    def test_partial_update_keeps_other_fields(self, client):
        created = create(client, files={"image": png()}).json()["product"]

        response = client.put(f"{PRODUCTS}/{created['id']}", data={"price": "1500"})

        assert response.status_code == 200
        updated = response.json()["product"]
        assert updated["id"] == created["id"]
        assert updated["price"] == 1500
        assert updated["name"] == created["name"]
        assert updated["image"] == created["image"]

    def test_update_replaces_image(self, client, s3_client):
        created = create(client, files={"image": png()}).json()["product"]

        response = client.put(f"{PRODUCTS}/{created['id']}", files={"image": png("new.png")})

        updated = response.json()["product"]
        assert updated["image"] != created["image"]
        assert list(s3_client.objects) == [updated["image"][len(BASE_URL) + 1:]]

    def test_update_invalid_price(self, client):
        created = create(client).json()["product"]

        response = client.put(f"{PRODUCTS}/{created['id']}", data={"price": "-5"})

        assert response.status_code == 400

    def test_update_unknown_id(self, client):
        response = client.put(f"{PRODUCTS}/{uuid.uuid4()}", data={"name": "Ghost"})

        assert response.status_code == 404


class TestDelete:

    def test_delete_returns_deleted_record(self, client, s3_client):
        created = create(client, files={"image": png()}).json()["product"]

        response = client.delete(f"{PRODUCTS}/{created['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Product deleted successfully"
        assert body["product"] == created
        assert s3_client.objects == {}
        assert client.get(f"{PRODUCTS}/{created['id']}").status_code == 404

    def test_delete_unknown_id(self, client):
        response = client.delete(f"{PRODUCTS}/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"


class TestUnexpectedErrors:

    def test_store_failure_is_generic_500(self, make_client, monkeypatch):
        client = make_client(raise_server_exceptions=False)

        async def broken_get_all(db):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(product_dao, "get_all", broken_get_all)

        response = client.get(PRODUCTS)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Server error",
            "error": "database unavailable",
        }

    @pytest.mark.parametrize("path", ["/", "/health"])
    def test_service_endpoints(self, client, path):
        assert client.get(path).status_code == 200
