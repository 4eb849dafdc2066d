"""
Stock API tests: movement recording, ledger listing and low-stock alerts.
"""

from bvolt.models import StockMovement


def _post_movement(client, headers, product_id, tipo, quantidade, **extra):
    payload = {"produto_id": product_id, "tipo": tipo, "quantidade": quantidade}
    payload.update(extra)
    return client.post("/api/stock/movement", json=payload, headers=headers)


class TestMovementRoute:

    def test_record_inbound(self, client, manager_headers, make_product):
        product = make_product()

        resp = _post_movement(client, manager_headers, product.id, "entrada", 10, observacao="NF 123")

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["message"] == "Stock movement recorded successfully"
        movement = body["movement"]
        assert movement["produto_id"] == product.id
        assert movement["tipo"] == "entrada"
        assert movement["quantidade"] == 10
        assert movement["observacao"] == "NF 123"
        assert movement["nova_quantidade"] == 10
        assert movement["data_movimentacao"].endswith("Z")

    def test_outbound_underflow(self, client, admin_headers, make_product, db_session):
        product = make_product()
        _post_movement(client, admin_headers, product.id, "entrada", 10)
        _post_movement(client, admin_headers, product.id, "saida", 4)

        resp = _post_movement(client, admin_headers, product.id, "saida", 10)

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["details"]["quantidade_atual"] == 6
        assert db_session.query(StockMovement).filter_by(product_id=product.id).count() == 2

    def test_first_adjustment_is_zero(self, client, manager_headers, make_product):
        product = make_product()
        resp = _post_movement(client, manager_headers, product.id, "ajuste", 25)
        assert resp.status_code == 201
        assert resp.get_json()["movement"]["nova_quantidade"] == 0

    def test_unknown_product(self, client, manager_headers):
        resp = _post_movement(client, manager_headers, 424242, "entrada", 1)
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "PRODUCT_NOT_FOUND"

    def test_invalid_type(self, client, manager_headers, make_product):
        product = make_product()
        resp = _post_movement(client, manager_headers, product.id, "inbound", 1)
        assert resp.status_code == 400

    def test_fractional_quantity_rejected(self, client, manager_headers, make_product):
        product = make_product()
        resp = _post_movement(client, manager_headers, product.id, "entrada", 1.5)
        assert resp.status_code == 400


class TestStockListing:

    def test_list_stock_with_search(self, client, manager_headers, make_product):
        cabo = make_product("CABO", name="Cabo Flexivel")
        disj = make_product("DISJ", name="Disjuntor 20A")
        _post_movement(client, manager_headers, cabo.id, "entrada", 5)
        _post_movement(client, manager_headers, disj.id, "entrada", 7)

        resp = client.get("/api/stock?search=cabo", headers=manager_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total"] == 1
        assert body["page"] == 1
        assert body["limit"] == 10
        assert body["stock"][0]["codigo"] == "CABO"
        assert body["stock"][0]["quantidade_atual"] == 5

    def test_list_movements_for_product(self, client, manager_headers, seller_headers, make_product):
        a = make_product("A")
        b = make_product("B")
        _post_movement(client, manager_headers, a.id, "entrada", 5)
        _post_movement(client, manager_headers, a.id, "saida", 2)
        _post_movement(client, manager_headers, b.id, "entrada", 1)

        resp = client.get(f"/api/stock/movements?produto_id={a.id}", headers=seller_headers)

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["total"] == 2
        assert [m["tipo"] for m in body["movements"]] == ["saida", "entrada"]

    def test_low_stock(self, client, manager_headers, make_product):
        product = make_product()
        _post_movement(client, manager_headers, product.id, "entrada", 3)
        _post_movement(client, manager_headers, product.id, "saida", 3)

        resp = client.get("/api/stock/low", headers=manager_headers)

        assert resp.status_code == 200
        rows = resp.get_json()["low_stock"]
        assert [row["produto_id"] for row in rows] == [product.id]
