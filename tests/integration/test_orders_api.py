from conftest import address, auth_headers


def _checkout(client, catalog, intent, headers=None):
    return client.post(
        "/api/checkout/create-order",
        json={
            "items": [{"productVariantId": catalog["brown"], "price": 25, "quantity": 1, "size": "10", "color": "brown"}],
            "shippingAddress": address(),
            "paymentIntentId": intent,
        },
        headers=headers or {},
    )


def test_user_orders_requires_authentication(client, catalog):
    assert client.get("/api/user/orders").status_code == 401


def test_user_sees_only_own_orders(client, catalog, user_headers):
    _checkout(client, catalog, "pi_mine", user_headers)
    _checkout(client, catalog, "pi_theirs", auth_headers("user-2"))
    _checkout(client, catalog, "pi_guest")

    resp = client.get("/api/user/orders", headers=user_headers)
    assert resp.status_code == 200
    assert [o["paymentIntentId"] for o in resp.json()["orders"]] == ["pi_mine"]
