"""
Catalog API tests: product and client listing and creation.
"""

from bvolt.models import Client, Product


class TestProductRoutes:

    def test_manager_creates_product(self, client, manager_headers, db_session):
        resp = client.post(
            "/api/products",
            json={"codigo": "DISJ-20", "nome": "Disjuntor 20A", "preco_venda": "18.90"},
            headers=manager_headers,
        )

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["codigo"] == "DISJ-20"
        assert product["preco_venda"] == "18.90"
        assert product["ativo"] is True
        assert db_session.query(Product).count() == 1

    def test_seller_cannot_create_product(self, client, seller_headers, db_session):
        resp = client.post(
            "/api/products",
            json={"codigo": "X", "nome": "X", "preco_venda": "1.00"},
            headers=seller_headers,
        )
        assert resp.status_code == 403
        assert db_session.query(Product).count() == 0

    def test_duplicate_code(self, client, manager_headers, make_product):
        make_product("CABO")
        resp = client.post(
            "/api/products",
            json={"codigo": "CABO", "nome": "Outro cabo", "preco_venda": "2.00"},
            headers=manager_headers,
        )
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "PRODUCT_CODE_IN_USE"

    def test_price_out_of_range(self, client, manager_headers):
        resp = client.post(
            "/api/products",
            json={"codigo": "P", "nome": "P", "preco_venda": "10000000000.00"},
            headers=manager_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"field": "preco_venda"}

    def test_list_search_and_active_filter(self, client, seller_headers, make_product):
        make_product("CABO-25", name="Cabo 2,5mm")
        make_product("CABO-40", name="Cabo 4mm", is_active=False)
        make_product("DISJ", name="Disjuntor")

        resp = client.get("/api/products?search=cabo", headers=seller_headers)
        body = resp.get_json()
        assert resp.status_code == 200
        assert [p["codigo"] for p in body["products"]] == ["CABO-25", "CABO-40"]
        assert body["pagination"]["total"] == 2

        resp = client.get("/api/products?search=cabo&ativo=false", headers=seller_headers)
        assert [p["codigo"] for p in resp.get_json()["products"]] == ["CABO-40"]

    def test_bad_active_flag(self, client, seller_headers):
        resp = client.get("/api/products?ativo=talvez", headers=seller_headers)
        assert resp.status_code == 400


class TestClientRoutes:

    def test_seller_creates_client(self, client, seller_headers, db_session):
        resp = client.post(
            "/api/clients",
            json={"nome": "Obra Gama", "documento": "11222333000144", "email": "obra@gama.test"},
            headers=seller_headers,
        )

        assert resp.status_code == 201
        created = resp.get_json()["client"]
        assert created["nome"] == "Obra Gama"
        assert created["documento"] == "11222333000144"
        assert db_session.query(Client).count() == 1

    def test_duplicate_document(self, client, seller_headers, customer):
        resp = client.post(
            "/api/clients",
            json={"nome": "Outra", "documento": customer.document},
            headers=seller_headers,
        )
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "DUPLICATE_RECORD"

    def test_name_required(self, client, seller_headers):
        resp = client.post("/api/clients", json={"email": "x@y.test"}, headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"fields": ["nome"]}

    def test_list_search(self, client, seller_headers, customer, db_session):
        client.post("/api/clients", json={"nome": "Eletrica Delta"}, headers=seller_headers)

        resp = client.get("/api/clients?search=alfa", headers=seller_headers)

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["total"] == 1
        assert body["clients"][0]["id"] == customer.id
