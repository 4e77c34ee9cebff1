from datetime import datetime, timedelta

from sqlalchemy import delete, func, select

from order_api.db.models import Order
from order_api.db.repository import OrderConflictError, OrderRepository


def _create(client, name="John Doe", amount=150.50):
    response = client.post(
        "/api/orders", json={"customerName": name, "totalAmount": amount}
    )
    assert response.status_code == 201
    return response.json()


def _count(app):
    with app.state.session_factory() as session:
        return session.scalar(select(func.count()).select_from(Order))


def test_list_empty(client):
    response = client.get("/api/orders")

    assert response.status_code == 200
    assert response.json() == []


def test_create_order(client):
    response = client.post(
        "/api/orders", json={"customerName": "John Doe", "totalAmount": 150.50}
    )

    assert response.status_code == 201
    body = response.json()
    assert isinstance(body["id"], int)
    assert body["customerName"] == "John Doe"
    assert body["totalAmount"] == 150.5
    assert "createdAt" in body
    assert response.headers["location"].endswith(f"/api/orders/{body['id']}")


def test_get_created_order(client):
    created = _create(client)

    response = client.get(f"/api/orders/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_missing_order_is_empty_404(client):
    response = client.get("/api/orders/999")

    assert response.status_code == 404
    assert response.content == b""


def test_list_returns_all_orders(client):
    first = _create(client, "A", 1)
    second = _create(client, "B", 2)

    response = client.get("/api/orders")

    assert [o["id"] for o in response.json()] == [first["id"], second["id"]]


def test_create_rejects_empty_customer_name(client, app):
    response = client.post("/api/orders", json={"customerName": "", "totalAmount": 10})

    assert response.status_code == 400
    assert "customerName" in response.json()["errors"]
    assert _count(app) == 0


def test_create_rejects_blank_customer_name(client, app):
    response = client.post("/api/orders", json={"customerName": "   ", "totalAmount": 10})

    assert response.status_code == 400
    assert _count(app) == 0


def test_create_rejects_missing_total_amount(client, app):
    response = client.post("/api/orders", json={"customerName": "John Doe"})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == 400
    assert "totalAmount" in body["errors"]
    assert _count(app) == 0


def test_create_rejects_malformed_total_amount(client, app):
    response = client.post(
        "/api/orders", json={"customerName": "John Doe", "totalAmount": "lots"}
    )

    assert response.status_code == 400
    assert _count(app) == 0


def test_create_allows_negative_amount(client):
    body = _create(client, "Refund", -20.25)

    assert body["totalAmount"] == -20.25


def test_update_order(client):
    created = _create(client)

    response = client.put(
        f"/api/orders/{created['id']}",
        json={"customerName": "Jane Doe", "totalAmount": 99.99},
    )

    assert response.status_code == 204
    assert response.content == b""
    fetched = client.get(f"/api/orders/{created['id']}").json()
    assert fetched["customerName"] == "Jane Doe"
    assert fetched["totalAmount"] == 99.99
    assert fetched["createdAt"] == created["createdAt"]
    assert fetched["id"] == created["id"]


def test_update_missing_order(client):
    response = client.put(
        "/api/orders/999", json={"customerName": "Jane Doe", "totalAmount": 1}
    )

    assert response.status_code == 404


def test_update_rejects_invalid_body(client):
    created = _create(client)

    response = client.put(f"/api/orders/{created['id']}", json={"customerName": ""})

    assert response.status_code == 400


def test_update_after_concurrent_delete(client, app, monkeypatch):
    created = _create(client)
    real_get_by_id = OrderRepository.get_by_id

    def get_then_delete_elsewhere(self, order_id):
        found = real_get_by_id(self, order_id)
        with app.state.session_factory() as other:
            other.execute(delete(Order).where(Order.id == order_id))
            other.commit()
        return found

    monkeypatch.setattr(OrderRepository, "get_by_id", get_then_delete_elsewhere)

    response = client.put(
        f"/api/orders/{created['id']}",
        json={"customerName": "Jane Doe", "totalAmount": 1},
    )

    assert response.status_code == 404


def test_update_conflict_is_409(client, monkeypatch):
    created = _create(client)

    def conflicting_update(self, order_id, customer_name, total_amount):
        raise OrderConflictError(order_id)

    monkeypatch.setattr(OrderRepository, "update", conflicting_update)

    response = client.put(
        f"/api/orders/{created['id']}",
        json={"customerName": "Jane Doe", "totalAmount": 1},
    )

    assert response.status_code == 409
    assert response.json()["status"] == 409


def test_delete_order(client):
    created = _create(client)

    response = client.delete(f"/api/orders/{created['id']}")

    assert response.status_code == 204
    assert client.get(f"/api/orders/{created['id']}").status_code == 404


def test_delete_twice_is_404(client):
    created = _create(client)

    assert client.delete(f"/api/orders/{created['id']}").status_code == 204
    assert client.delete(f"/api/orders/{created['id']}").status_code == 404
    assert client.delete(f"/api/orders/{created['id']}").status_code == 404


def test_non_integer_id_is_400(client):
    response = client.get("/api/orders/abc")

    assert response.status_code == 400


def test_store_failure_is_500_without_details(client, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken_list_all(self):
        raise OperationalError("SELECT orders", {}, Exception("connection refused by db.internal"))

    monkeypatch.setattr(OrderRepository, "list_all", broken_list_all)

    response = client.get("/api/orders")

    assert response.status_code == 500
    assert "db.internal" not in response.text


def test_create_rejects_string_total_amount(client, app):
    response = client.post(
        "/api/orders", json={"customerName": "John Doe", "totalAmount": "150.50"}
    )

    assert response.status_code == 400
    assert "totalAmount" in response.json()["errors"]
    assert _count(app) == 0


def test_create_rejects_boolean_total_amount(client, app):
    response = client.post(
        "/api/orders", json={"customerName": "John Doe", "totalAmount": True}
    )

    assert response.status_code == 400
    assert _count(app) == 0


def test_create_rejects_amount_too_large_for_column(client, app):
    response = client.post(
        "/api/orders", json={"customerName": "John Doe", "totalAmount": 1e20}
    )

    assert response.status_code == 400
    assert "totalAmount" in response.json()["errors"]
    assert _count(app) == 0


def test_create_rejects_sub_cent_amount(client, app):
    response = client.post(
        "/api/orders", json={"customerName": "John Doe", "totalAmount": 1.005}
    )

    assert response.status_code == 400
    assert _count(app) == 0


def test_create_accepts_integer_amount(client):
    body = _create(client, "Whole", 42)

    assert body["totalAmount"] == 42


def test_update_rejects_string_total_amount(client):
    created = _create(client)

    response = client.put(
        f"/api/orders/{created['id']}",
        json={"customerName": "Jane Doe", "totalAmount": "99.99"},
    )

    assert response.status_code == 400


def test_update_missing_order_with_invalid_body_is_400(client):
    # The body is validated before the store is consulted
    response = client.put("/api/orders/999", json={"customerName": ""})

    assert response.status_code == 400


def test_created_at_is_utc(client):
    created = _create(client)

    created_at = datetime.fromisoformat(created["createdAt"].replace("Z", "+00:00"))
    assert created_at.utcoffset() == timedelta(0)

    fetched = client.get(f"/api/orders/{created['id']}").json()
    assert fetched["createdAt"] == created["createdAt"]
