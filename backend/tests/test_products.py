# Overview: Pytest coverage for product listing, creation and barcode lookup.

from conftest import auth_headers


class TestCreateProduct:
    def test_admin_creates_product_with_defaults(self, client, admin_token):
        response = client.post("/api/products", json={"name": "Gelo 5kg", "price": "12,90"}, headers=auth_headers(admin_token))
        assert response.status_code == 201
        product = response.json
        assert product["price_cents"] == 1290
        assert product["price"] == 12.90
        assert product["category"] == "Geral"
        assert product["unit"] == "UN"
        assert product["stock"] == 0

    def test_operator_cannot_create(self, client, operator_token):
        response = client.post("/api/products", json={"name": "Gelo", "price": 1}, headers=auth_headers(operator_token))
        assert response.status_code == 403
        assert response.json["required_roles"] == ["admin"]

    def test_missing_price(self, client, admin_token):
        response = client.post("/api/products", json={"name": "Gelo"}, headers=auth_headers(admin_token))
        assert response.status_code == 400

    def test_negative_price(self, client, admin_token):
        response = client.post("/api/products", json={"name": "Gelo", "price": -1}, headers=auth_headers(admin_token))
        assert response.status_code == 400

    def test_duplicate_barcode_in_same_business(self, client, admin_token, coca):
        response = client.post(
            "/api/products",
            json={"name": "Outra", "price": 1, "barcode": "7894900011517"},
            headers=auth_headers(admin_token),
        )
        assert response.status_code == 409

    def test_same_barcode_in_other_business_allowed(self, client, admin_b_token, coca):
        response = client.post(
            "/api/products",
            json={"name": "Coca B", "price": 9, "barcode": "7894900011517"},
            headers=auth_headers(admin_b_token),
        )
        assert response.status_code == 201


class TestListProducts:
    def test_list_sorted_by_name(self, client, operator_token, coca, skol):
        response = client.get("/api/products", headers=auth_headers(operator_token))
        assert response.status_code == 200
        assert [p["name"] for p in response.json] == ["Cerveja Skol Lata 350ml", "Coca-Cola 2L"]

    def test_search_by_name_or_barcode(self, client, operator_token, coca, skol):
        response = client.get("/api/products?search=coca", headers=auth_headers(operator_token))
        assert [p["name"] for p in response.json] == ["Coca-Cola 2L"]

        response = client.get("/api/products?search=7891991010924", headers=auth_headers(operator_token))
        assert [p["name"] for p in response.json] == ["Cerveja Skol Lata 350ml"]

    def test_category_and_low_stock(self, client, admin_token, coca, skol):
        client.post(
            "/api/products",
            json={"name": "Água", "price": 2, "stock": 1, "minStock": 5, "category": "Água"},
            headers=auth_headers(admin_token),
        )
        response = client.get("/api/products?category=Cerveja", headers=auth_headers(admin_token))
        assert [p["name"] for p in response.json] == ["Cerveja Skol Lata 350ml"]

        response = client.get("/api/products?lowStock=true", headers=auth_headers(admin_token))
        assert [p["name"] for p in response.json] == ["Água"]
        assert response.json[0]["low_stock"] is True

    def test_other_tenant_products_invisible(self, client, operator_token, product_b):
        response = client.get("/api/products", headers=auth_headers(operator_token))
        assert response.json == []

        response = client.get(f"/api/products/{product_b.id}", headers=auth_headers(operator_token))
        assert response.status_code == 404


class TestBarcodeLookup:
    def test_found(self, client, operator_token, coca):
        response = client.get("/api/products/barcode/7894900011517", headers=auth_headers(operator_token))
        assert response.status_code == 200
        assert response.json["id"] == coca.id

    def test_not_found(self, client, operator_token, business_a):
        response = client.get("/api/products/barcode/123", headers=auth_headers(operator_token))
        assert response.status_code == 404
        assert response.json["error"] == "Product not found"
