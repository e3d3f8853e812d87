from zealous.models import CartItem


def test_add_creates_cart_and_populates_lines(client, headers, make_product):
    pid = make_product(name="Triphala Churna", price=249, discount=5)

    resp = client.post("/api/cart", json={"productId": pid, "quantity": "100 g"}, headers=headers)
    assert resp.status_code == 201
    [line] = resp.json()["result"]
    assert line["_id"] == pid
    assert line["name"] == "Triphala Churna"
    assert line["price"] == 249
    assert line["items"] == 1
    assert line["quantity"] == "100 g"


def test_add_existing_line_increments_and_overwrites_label(client, headers, make_product, count):
    pid = make_product()
    client.post("/api/cart", json={"productId": pid, "quantity": "60 caps", "items": 2}, headers=headers)
    resp = client.post("/api/cart", json={"productId": pid, "quantity": "120 caps", "items": 3}, headers=headers)

    [line] = resp.json()["result"]
    assert line["items"] == 5
    assert line["quantity"] == "120 caps"
    assert count(CartItem) == 1


def test_add_validation(client, headers):
    assert client.post("/api/cart", json={"productId": 1}, headers=headers).status_code == 400
    resp = client.post("/api/cart", json={"productId": 999, "quantity": 1}, headers=headers)
    assert resp.status_code == 404
    assert client.post("/api/cart", json={"productId": 1, "quantity": 1}).status_code == 401


def test_get_cart(client, headers, make_product):
    resp = client.get("/api/cart", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["result"] == "Cart not found."

    pid = make_product()
    client.post("/api/cart", json={"productId": pid, "quantity": 1}, headers=headers)
    resp = client.get("/api/cart", headers=headers)
    assert resp.status_code == 200
    assert [line["_id"] for line in resp.json()["result"]] == [pid]


def test_merge_guest_cart(client, headers, make_product):
    a = make_product(name="A")
    b = make_product(name="B")
    client.post("/api/cart", json={"productId": a, "quantity": "1", "items": 1}, headers=headers)

    resp = client.post(
        "/api/cart/items",
        json={"products": [{"productId": a, "quantity": "1", "items": 2}, {"productId": b, "quantity": "1"}]},
        headers=headers,
    )
    assert resp.status_code == 200

    lines = {line["_id"]: line for line in client.get("/api/cart", headers=headers).json()["result"]}
    assert lines[a]["items"] == 3
    assert lines[b]["items"] == 1


def test_merge_rejects_unknown_products(client, headers, make_product, count):
    a = make_product()
    resp = client.post(
        "/api/cart/items",
        json={"products": [{"productId": a, "quantity": 1}, {"productId": 404, "quantity": 1}]},
        headers=headers,
    )
    assert resp.status_code == 404
    assert count(CartItem) == 0
    assert client.post("/api/cart/items", json={}, headers=headers).status_code == 400


def test_decrement_removes_line_at_zero(client, headers, make_product):
    pid = make_product()
    client.post("/api/cart", json={"productId": pid, "quantity": 1, "items": 2}, headers=headers)

    resp = client.put("/api/cart/items", json={"productId": pid}, headers=headers)
    assert resp.json()["result"][0]["items"] == 1

    resp = client.put("/api/cart/items", json={"productId": pid}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["result"] == []

    resp = client.put("/api/cart/items", json={"productId": pid}, headers=headers)
    assert resp.status_code == 404


def test_delete_line_regardless_of_count(client, headers, make_product):
    pid = make_product()
    client.post("/api/cart", json={"productId": pid, "quantity": 1, "items": 7}, headers=headers)

    resp = client.delete(f"/api/cart/items?productId={pid}", headers=headers)
    assert resp.status_code == 200
    assert client.get("/api/cart", headers=headers).json()["result"] == []
    assert client.delete(f"/api/cart/items?productId={pid}", headers=headers).status_code == 404
    assert client.delete("/api/cart/items", headers=headers).status_code == 400


def test_carts_are_per_customer(client, login, make_product):
    pid = make_product()
    first = login("one@example.com")
    second = login("two@example.com")
    client.post("/api/cart", json={"productId": pid, "quantity": 1}, headers=first)
    assert client.get("/api/cart", headers=second).status_code == 404
