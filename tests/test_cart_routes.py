import pytest

from storefront.models import MAX_LINE_QUANTITY


def _post(client, **body):
    return client.post("/api/cart", json=body)


def test_add_to_empty_store_creates_guest_cart(client, product_factory):
    pid = product_factory()

    r = _post(client, productId=pid, quantity=2, guestId="g1")

    assert r.status_code == 201, r.text
    data = r.json()
    assert data["guestId"] == "g1"
    assert data["userId"] is None
    assert data["totalPrice"] == pytest.approx(50.0)
    assert len(data["products"]) == 1
    line = data["products"][0]
    assert line["productId"] == pid
    assert line["quantity"] == 2
    assert line["price"] == pytest.approx(25.0)
    assert line["image"] == "https://img.example.com/linen.jpg"


def test_second_add_increments_same_line(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=2, guestId="g1")

    r = _post(client, productId=pid, quantity=3, guestId="g1")

    assert r.status_code == 200
    data = r.json()
    assert [p["quantity"] for p in data["products"]] == [5]
    assert data["totalPrice"] == pytest.approx(125.0)


def test_add_without_owner_returns_generated_guest_id(client, product_factory):
    pid = product_factory()
    r = _post(client, productId=pid, quantity=1)
    assert r.status_code == 201
    assert r.json()["guestId"].startswith("guest_")


@pytest.mark.parametrize("quantity", [0, -1, "lots", 1.5, True, MAX_LINE_QUANTITY + 1, 10**12])
def test_add_rejects_invalid_quantity(client, product_factory, quantity):
    pid = product_factory()
    r = _post(client, productId=pid, quantity=quantity, guestId="g1")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid input"
    assert client.get("/api/cart", params={"guestId": "g1"}).status_code == 404


def test_put_rejects_boolean_quantity(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=2, guestId="g1")

    r = client.put("/api/cart", json={"productId": pid, "quantity": True, "guestId": "g1"})

    assert r.status_code == 400
    assert client.get("/api/cart", params={"guestId": "g1"}).json()["products"][0]["quantity"] == 2


def test_add_past_line_limit_is_rejected(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=MAX_LINE_QUANTITY, guestId="g1")

    r = _post(client, productId=pid, quantity=1, guestId="g1")

    assert r.status_code == 400
    assert r.json()["message"] == "Cart quantity or total exceeds the allowed limit"


def test_add_rejects_malformed_product_id(client):
    r = _post(client, productId="not-an-id", quantity=1, guestId="g1")
    assert r.status_code == 400


def test_add_unknown_product(client):
    r = _post(client, productId=12345, quantity=1, guestId="g1")
    assert r.status_code == 404
    assert r.json()["message"] == "Product not found"


def test_user_id_takes_precedence_over_guest_id(client, product_factory, user_factory):
    pid = product_factory()
    user_id, _ = user_factory()

    r = _post(client, productId=pid, quantity=1, guestId="g1", userId=user_id)

    assert r.status_code == 201
    assert r.json()["userId"] == user_id
    assert r.json()["guestId"] is None
    assert client.get("/api/cart", params={"guestId": "g1"}).status_code == 404


def test_put_sets_absolute_quantity(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=5, guestId="g1", size="M", color="Blue")

    r = client.put("/api/cart", json={"productId": pid, "quantity": 3, "guestId": "g1", "size": "M", "color": "Blue"})

    assert r.status_code == 200
    assert r.json()["products"][0]["quantity"] == 3
    assert r.json()["totalPrice"] == pytest.approx(75.0)


def test_put_zero_removes_line(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=5, guestId="g1")

    r = client.put("/api/cart", json={"productId": pid, "quantity": 0, "guestId": "g1"})

    assert r.status_code == 200
    assert r.json()["products"] == []
    assert r.json()["totalPrice"] == 0


def test_put_missing_cart_or_line(client, product_factory):
    pid = product_factory()
    r = client.put("/api/cart", json={"productId": pid, "quantity": 2, "guestId": "nobody"})
    assert r.status_code == 404

    _post(client, productId=pid, quantity=1, guestId="g1", size="M")
    r = client.put("/api/cart", json={"productId": pid, "quantity": 2, "guestId": "g1", "size": "L"})
    assert r.status_code == 404


def test_delete_removes_line(client, product_factory):
    pid = product_factory()
    other = product_factory(name="Scarf", sku="SC-1")
    _post(client, productId=pid, quantity=1, guestId="g1", size="M")
    _post(client, productId=other, quantity=2, guestId="g1")

    r = client.request("DELETE", "/api/cart", json={"productId": pid, "guestId": "g1"})

    assert r.status_code == 200
    assert [p["productId"] for p in r.json()["products"]] == [other]
    assert r.json()["totalPrice"] == pytest.approx(50.0)


def test_delete_missing_line_keeps_total(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=2, guestId="g1")

    r = client.request("DELETE", "/api/cart", json={"productId": pid + 1, "guestId": "g1"})
    assert r.status_code == 404

    cart = client.get("/api/cart", params={"guestId": "g1"}).json()
    assert cart["totalPrice"] == pytest.approx(50.0)


def test_delete_invalid_product_id(client):
    r = client.request("DELETE", "/api/cart", json={"productId": "x", "guestId": "g1"})
    assert r.status_code == 400


def test_get_cart(client, product_factory):
    pid = product_factory()
    _post(client, productId=pid, quantity=1, guestId="g1")

    assert client.get("/api/cart", params={"guestId": "g1"}).status_code == 200
    assert client.get("/api/cart", params={"guestId": "g2"}).status_code == 404
    assert client.get("/api/cart").status_code == 404


def test_merge_guest_cart_on_login(client, product_factory, user_factory):
    a = product_factory(name="A", sku="A-1", price=10)
    b = product_factory(name="B", sku="B-1", price=4)
    user_id, headers = user_factory()
    _post(client, productId=a, quantity=2, guestId="g1")
    _post(client, productId=b, quantity=1, guestId="g1")
    _post(client, productId=a, quantity=1, userId=user_id)

    r = client.post("/api/cart/merge", json={"guestId": "g1"}, headers=headers)

    assert r.status_code == 200, r.text
    data = r.json()
    assert data["userId"] == user_id
    assert {p["productId"]: p["quantity"] for p in data["products"]} == {a: 3, b: 1}
    assert data["totalPrice"] == pytest.approx(34.0)
    assert client.get("/api/cart", params={"guestId": "g1"}).status_code == 404

    # retrying after a successful merge is harmless
    again = client.post("/api/cart/merge", json={"guestId": "g1"}, headers=headers)
    assert again.status_code == 200
    assert again.json()["id"] == data["id"]


def test_merge_requires_token(client):
    r = client.post("/api/cart/merge", json={"guestId": "g1"})
    assert r.status_code == 401


def test_merge_errors(client, product_factory, user_factory):
    pid = product_factory()
    _, headers = user_factory()

    assert client.post("/api/cart/merge", json={"guestId": ""}, headers=headers).status_code == 400
    assert client.post("/api/cart/merge", json={"guestId": "g1"}, headers=headers).status_code == 404

    _post(client, productId=pid, quantity=1, guestId="g1")
    client.request("DELETE", "/api/cart", json={"productId": pid, "guestId": "g1"})
    r = client.post("/api/cart/merge", json={"guestId": "g1"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Guest cart is empty"
