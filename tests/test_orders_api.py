import json

from fastapi.testclient import TestClient

from conftest import AUTH_HEADERS, make_submission
from main import app
from services.orders_service import get_order_service

VALID_STATUSES = ["pending", "confirmed", "preparing", "on_the_way", "delivered", "cancelled"]


def _place_order(client, **overrides):
    response = client.post("/api/orders", json=make_submission(**overrides), headers=AUTH_HEADERS)
    assert response.status_code == 201
    return response.json()["order"]


def test_create_order_returns_confirmed_order(client, submission):
    response = client.post("/api/orders", json=submission, headers=AUTH_HEADERS)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Order created successfully"
    assert body["order"]["status"] == "confirmed"
    assert body["order"]["user_id"] == "u1"
    assert len(body["order"]["tracking_steps"]) == 1
    assert body["order"]["tracking_steps"][0]["step"] == "order_placed"


def test_create_order_reports_every_validation_failure(client, repository):
    response = client.post(
        "/api/orders",
        json=make_submission(items=[], total=0, payment={"method": "cash"}),
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert len(body["details"]) == 3
    assert repository.rows == {}


def test_create_order_rejects_malformed_json(client):
    response = client.post(
        "/api/orders",
        content=b"{not json",
        headers={**AUTH_HEADERS, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_create_order_store_failure_is_generic_500(client, repository, submission):
    repository.fail_with = "duplicate key value violates unique constraint"

    response = client.post("/api/orders", json=submission, headers=AUTH_HEADERS)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create order"}


def test_list_orders_for_owner(client):
    _place_order(client)
    _place_order(client, userId="u2")

    response = client.get("/api/orders", params={"userId": "u1"}, headers=AUTH_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["orders"][0]["user_id"] == "u1"


def test_list_orders_empty_is_not_an_error(client):
    response = client.get("/api/orders", params={"userId": "u9"}, headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"success": True, "orders": [], "count": 0}


def test_user_id_is_required(client):
    order = _place_order(client)

    for method, url in (
        ("get", "/api/orders"),
        ("get", f"/api/orders/{order['id']}"),
        ("patch", f"/api/orders/{order['id']}/status"),
    ):
        kwargs = {"json": {"status": "preparing"}} if method == "patch" else {}
        response = client.request(method, url, headers=AUTH_HEADERS, **kwargs)
        assert response.status_code == 400
        assert response.json() == {"error": "User ID required"}


def test_authorization_header_is_required(client):
    response = client.get("/api/orders", params={"userId": "u1"})

    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "Authorization header required"
    assert body["code"] == "UNAUTHORIZED"


def test_get_order_is_owner_scoped(client):
    order = _place_order(client)

    own = client.get(f"/api/orders/{order['id']}", params={"userId": "u1"}, headers=AUTH_HEADERS)
    other = client.get(f"/api/orders/{order['id']}", params={"userId": "u2"}, headers=AUTH_HEADERS)
    missing = client.get("/api/orders/does-not-exist", params={"userId": "u1"}, headers=AUTH_HEADERS)

    assert own.status_code == 200
    assert own.json()["order"]["id"] == order["id"]
    assert other.status_code == 404
    assert other.json() == missing.json() == {"error": "Order not found"}


def test_patch_status_appends_tracking_step(client):
    order = _place_order(client)

    response = client.patch(
        f"/api/orders/{order['id']}/status",
        params={"userId": "u1"},
        json={"status": "on_the_way"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Order status updated successfully"
    steps = body["order"]["tracking_steps"]
    assert len(steps) == 2
    assert steps[1]["step"] == "on_the_way"
    assert steps[1]["message"] == "Order status updated to on_the_way"
    assert body["order"]["status"] == "on_the_way"
    assert body["order"]["updated_at"] is not None


def test_patch_unknown_status_leaves_order_unchanged(client):
    order = _place_order(client)
    url = f"/api/orders/{order['id']}/status"

    response = client.patch(url, params={"userId": "u1"}, json={"status": "shipped"}, headers=AUTH_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid status", "validStatuses": VALID_STATUSES}
    current = client.get(f"/api/orders/{order['id']}", params={"userId": "u1"}, headers=AUTH_HEADERS)
    assert current.json()["order"]["status"] == "confirmed"
    assert len(current.json()["order"]["tracking_steps"]) == 1


def test_patch_requires_status(client):
    order = _place_order(client)

    response = client.patch(
        f"/api/orders/{order['id']}/status",
        params={"userId": "u1"},
        json={"message": "hello"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Status is required"}


def test_patch_other_owner_is_not_found(client):
    order = _place_order(client)

    response = client.patch(
        f"/api/orders/{order['id']}/status",
        params={"userId": "u2"},
        json={"status": "delivered"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


def test_same_status_twice_grows_log_twice(client):
    order = _place_order(client)
    url = f"/api/orders/{order['id']}/status"

    for _ in range(2):
        response = client.patch(url, params={"userId": "u1"}, json={"status": "preparing"}, headers=AUTH_HEADERS)
        assert response.status_code == 200

    steps = response.json()["order"]["tracking_steps"]
    assert [step["step"] for step in steps] == ["order_placed", "preparing", "preparing"]


def test_create_order_rejects_infinite_total(client, repository):
    body = json.dumps(make_submission(total=float("inf")))
    assert "Infinity" in body

    response = client.post(
        "/api/orders",
        content=body.encode(),
        headers={**AUTH_HEADERS, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["details"][0].startswith('"total"')
    assert repository.rows == {}


def test_trailing_slash_is_served_without_redirect(client):
    created = client.post("/api/orders/", json=make_submission(), headers=AUTH_HEADERS)
    listed = client.get(
        "/api/orders/",
        params={"userId": "u1"},
        headers=AUTH_HEADERS,
        follow_redirects=False,
    )

    assert created.status_code == 201
    assert listed.status_code == 200
    assert listed.json()["count"] == 1


def test_unexpected_error_keeps_cors_headers(service, monkeypatch):
    async def broken_list_orders(user_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(service, "list_orders", broken_list_orders)
    app.dependency_overrides[get_order_service] = lambda: service
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get(
                "/api/orders",
                params={"userId": "u1"},
                headers={**AUTH_HEADERS, "Origin": "http://localhost:5173"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
