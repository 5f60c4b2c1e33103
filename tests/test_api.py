from conftest import add_customer, add_product, auth_headers
from sales_service.app.mail import MailSender
from sales_service.app.main import app, get_mailer


def _seed(client):
    client.post("/api/v1/customers", json={"name": "Ana", "email": "ana@example.com"})
    client.post("/api/v1/customers", json={"name": "Bruno", "email": "bruno@example.com"})
    cake = client.post("/api/v1/products", json={"name": "Cake", "price": "15.90"}).json()
    client.post("/api/v1/stock/items", json={"product_id": cake["id"], "quantity": 5})
    return cake


def test_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Sales service is running"}


def test_create_order_flow(client, mailer, publisher):
    cake = _seed(client)

    resp = client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": cake["id"], "quantity": 2}]},
        headers=auth_headers("ana@example.com"),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "PENDING"
    assert body["customer"]["email"] == "ana@example.com"
    assert body["items"][0]["product_name"] == "Cake"
    assert float(body["total"]) == 31.80
    assert resp.headers["location"].endswith(f"/api/v1/orders/{body['id']}")

    assert client.get(f"/api/v1/stock/{cake['id']}").json()["quantity"] == 3
    assert client.get(f"/api/v1/orders/{body['id']}").json()["id"] == body["id"]
    assert len(mailer.sent) == 1
    assert publisher.events[0][0] == "order.created"


def test_create_order_requires_token(client):
    cake = _seed(client)
    resp = client.post("/api/v1/orders", json={"items": [{"product_id": cake["id"], "quantity": 1}]})
    assert resp.status_code == 401

    resp = client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": cake["id"], "quantity": 1}]},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert resp.status_code == 401


def test_create_order_errors_map_to_status_codes(client):
    cake = _seed(client)
    headers = auth_headers("ana@example.com")

    resp = client.post("/api/v1/orders", json={"items": []}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "The item list must not be empty"

    resp = client.post("/api/v1/orders", json={"items": [{"product_id": 999, "quantity": 1}]}, headers=headers)
    assert resp.status_code == 404

    resp = client.post(
        "/api/v1/orders", json={"items": [{"product_id": cake["id"], "quantity": 6}]}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Not enough stock for product"

    resp = client.post(
        "/api/v1/orders", json={"items": [{"product_id": cake["id"], "quantity": 0}]}, headers=headers
    )
    assert resp.status_code == 422


def test_search_endpoints(client):
    cake = _seed(client)
    assert client.get("/api/v1/orders").status_code == 404

    for _ in range(2):
        client.post(
            "/api/v1/orders",
            json={"items": [{"product_id": cake["id"], "quantity": 1}]},
            headers=auth_headers("ana@example.com"),
        )
    first_id = client.get("/api/v1/orders").json()[0]["id"]
    client.put(f"/api/v1/orders/{first_id}", headers=auth_headers("ana@example.com"))

    assert [o["id"] for o in client.get("/api/v1/orders/finished").json()] == [first_id]
    pending = client.get("/api/v1/orders/pending", params={"name": "ana"}).json()
    assert len(pending) == 1 and pending[0]["status"] == "PENDING"
    assert client.get("/api/v1/orders", params={"email": "bruno"}).status_code == 404


def test_complete_order_rules(client):
    cake = _seed(client)
    created = client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": cake["id"], "quantity": 1}]},
        headers=auth_headers("ana@example.com"),
    ).json()
    url = f"/api/v1/orders/{created['id']}"

    assert client.put(url, headers=auth_headers("bruno@example.com")).status_code == 403

    resp = client.put(url, headers=auth_headers("ana@example.com"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "COMPLETED"

    assert client.put(url, headers=auth_headers("ana@example.com")).status_code == 409
    assert client.put("/api/v1/orders/999", headers=auth_headers("ana@example.com")).status_code == 404


def test_duplicate_customer(client):
    client.post("/api/v1/customers", json={"name": "Ana", "email": "ana@example.com"})
    resp = client.post("/api/v1/customers", json={"name": "Ana 2", "email": "ana@example.com"})
    assert resp.status_code == 409


def test_stock_endpoints(client):
    cake = _seed(client)
    resp = client.post("/api/v1/stock/items", json={"product_id": cake["id"], "quantity": 3})
    assert resp.json() == {"product_id": cake["id"], "quantity": 8}
    assert client.get("/api/v1/stock/").json() == [{"product_id": cake["id"], "quantity": 8}]
    assert client.get("/api/v1/stock/999").status_code == 404
    assert client.post("/api/v1/stock/items", json={"product_id": 999, "quantity": 1}).status_code == 404
    assert [p["name"] for p in client.get("/api/v1/products").json()] == ["Cake"]


def test_item_without_product_reference_is_product_not_found(client):
    _seed(client)
    resp = client.post(
        "/api/v1/orders", json={"items": [{"quantity": 1}]}, headers=auth_headers("ana@example.com")
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Product not found"


def test_customer_name_with_line_break_is_rejected(client):
    resp = client.post("/api/v1/customers", json={"name": "Ana\nBcc: x@example.com", "email": "ana@example.com"})
    assert resp.status_code == 422


def test_order_is_returned_when_receipt_delivery_fails(client, db):
    add_customer(db, "Ana\nBcc: x@example.com", "ana@example.com")
    cake = add_product(db, "Cake", "10.00", quantity=5)
    app.dependency_overrides[get_mailer] = lambda: MailSender(host="127.0.0.1", port=1)

    resp = client.post(
        "/api/v1/orders",
        json={"items": [{"product_id": cake.id, "quantity": 2}]},
        headers=auth_headers("ana@example.com"),
    )

    assert resp.status_code == 201
    assert client.get(f"/api/v1/orders/{resp.json()['id']}").status_code == 200
    assert client.get(f"/api/v1/stock/{cake.id}").json()["quantity"] == 3
