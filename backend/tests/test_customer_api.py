"""
Tests for the customer API: session guard, cart and orders.
"""

from decimal import Decimal

import pytest


BURGER = {"menu_item_id": "burger", "item_name": "Burger", "price": "12.50"}
SODA = {"menu_item_id": "soda", "item_name": "Soda", "price": "3.00"}


@pytest.fixture
def session_code(client, waiter_headers, seed_table):
    """Active session on table "1"."""
    response = client.post("/api/staff/tables/1/session", headers=waiter_headers)
    return response.json()["session_code"]


@pytest.fixture
def visit(session_code):
    return {"table": "1", "session": session_code}


class TestSessionState:
    """GET /api/customer/session always answers 200 with the guard state."""

    def test_allowed(self, client, visit):
        response = client.get("/api/customer/session", params=visit)
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "allowed"
        assert data["table_id"] == "1"
        assert data["recheck_after_seconds"] > 0

    def test_no_session(self, client):
        data = client.get("/api/customer/session", params={"table": "1"}).json()
        assert data["state"] == "blocked"
        assert data["reason"] == "no_session"
        assert {r["action"] for r in data["recovery"]} == {"rescan", "home"}

    def test_ended_session(self, client, waiter_headers, visit):
        client.delete("/api/staff/tables/1/session", headers=waiter_headers)

        data = client.get("/api/customer/session", params=visit).json()

        assert data["state"] == "blocked"
        assert data["reason"] == "session_ended"

    def test_code_bound_to_its_table(self, client, sql_store, visit):
        from tableside.repositories import TableRecord

        sql_store.add_table(TableRecord(table_id="2", name="Table 2"))
        data = client.get("/api/customer/session", params={**visit, "table": "2"}).json()
        assert data["state"] == "blocked"

    def test_heartbeat(self, client, waiter_headers, visit):
        assert client.post("/api/customer/session/heartbeat", params=visit).json() == {"active": True}

        client.delete("/api/staff/tables/1/session", headers=waiter_headers)

        assert client.post("/api/customer/session/heartbeat", params=visit).json() == {"active": False}

    def test_heartbeat_with_other_table(self, client, sql_store, visit):
        from tableside.repositories import TableRecord

        sql_store.add_table(TableRecord(table_id="2", name="Table 2"))

        response = client.post("/api/customer/session/heartbeat", params={**visit, "table": "2"})

        assert response.json() == {"active": False}
        assert sql_store.find_session(visit["session"]).last_seen_at is None

    def test_heartbeat_without_session(self, client):
        assert client.post("/api/customer/session/heartbeat").json() == {"active": False}


class TestGuardedEndpoints:
    """Cart and order endpoints refuse requests without a live session."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/customer/cart"),
            ("delete", "/api/customer/cart"),
            ("get", "/api/customer/orders"),
            ("post", "/api/customer/orders"),
        ],
    )
    def test_blocked_without_session(self, client, seed_table, method, path):
        response = getattr(client, method)(path, params={"table": "1"})

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["reason"] == "no_session"
        assert detail["message"]
        assert detail["recovery"]

    def test_blocked_after_end(self, client, waiter_headers, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        client.delete("/api/staff/tables/1/session", headers=waiter_headers)

        response = client.get("/api/customer/cart", params=visit)

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "session_ended"

    def test_add_blocked_with_unknown_code(self, client, seed_table):
        response = client.post(
            "/api/customer/cart/items",
            params={"table": "1", "session": "1-0-forgedcode"},
            json=BURGER,
        )
        assert response.status_code == 403


class TestCartApi:
    """Cart flow for one visit."""

    def test_empty_cart(self, client, visit):
        response = client.get("/api/customer/cart", params=visit)
        assert response.status_code == 200
        data = response.json()
        assert data == {"table_id": "1", "items": [], "total_items": 0, "total_price": "0.00"}

    def test_add_and_totals(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        response = client.post("/api/customer/cart/items", params=visit, json=SODA)

        assert response.status_code == 200
        data = response.json()
        assert [(i["menu_item_id"], i["quantity"]) for i in data["items"]] == [("burger", 2), ("soda", 1)]
        assert data["total_items"] == 3
        assert Decimal(data["total_price"]) == Decimal("28.00")
        assert Decimal(data["items"][0]["line_total"]) == Decimal("25.00")

    def test_set_quantity(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)

        response = client.put("/api/customer/cart/items/burger", params=visit, json={"quantity": 4})

        assert response.json()["items"][0]["quantity"] == 4

    def test_set_quantity_zero_removes(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)

        response = client.put("/api/customer/cart/items/burger", params=visit, json={"quantity": 0})

        assert response.json()["items"] == []

    def test_quantity_above_limit_rejected(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        response = client.put("/api/customer/cart/items/burger", params=visit, json={"quantity": 100})
        assert response.status_code == 422

    def test_remove_one_unit(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        client.post("/api/customer/cart/items", params=visit, json=BURGER)

        response = client.delete("/api/customer/cart/items/burger", params=visit)

        assert response.json()["items"][0]["quantity"] == 1

    def test_clear(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        response = client.delete("/api/customer/cart", params=visit)
        assert response.json()["items"] == []

    def test_new_session_starts_with_empty_cart(self, client, waiter_headers, visit):
        """Restarting the table never carries the previous party's cart over."""
        client.post("/api/customer/cart/items", params=visit, json=BURGER)

        new_code = client.post("/api/staff/tables/1/session", headers=waiter_headers).json()["session_code"]
        data = client.get("/api/customer/cart", params={"table": "1", "session": new_code}).json()

        assert data["items"] == []

    def test_negative_price_rejected(self, client, visit):
        response = client.post(
            "/api/customer/cart/items",
            params=visit,
            json={**BURGER, "price": "-1.00"},
        )
        assert response.status_code == 422


class TestCustomerOrders:
    """Placing orders and moving them as a customer."""

    def test_place_order_clears_cart(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        client.post("/api/customer/cart/items", params=visit, json=SODA)

        response = client.post("/api/customer/orders", params=visit)

        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "pending"
        assert order["table_number"] == "1"
        assert Decimal(order["total"]) == Decimal("15.50")
        assert 10 <= order["estimated_minutes"] <= 29
        assert client.get("/api/customer/cart", params=visit).json()["items"] == []

    def test_empty_cart_rejected(self, client, visit):
        response = client.post("/api/customer/orders", params=visit)
        assert response.status_code == 400

    def test_send_cart_to_kitchen(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)

        response = client.post("/api/customer/orders/send-to-kitchen", params=visit)

        assert response.status_code == 201
        assert response.json()["status"] == "preparing"

    def test_send_pending_order_to_kitchen(self, client, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        order_id = client.post("/api/customer/orders", params=visit).json()["id"]

        response = client.post(f"/api/customer/orders/{order_id}/send-to-kitchen", params=visit)

        assert response.status_code == 200
        assert response.json()["status"] == "preparing"

    def test_confirm_pickup(self, client, kitchen_headers, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        order_id = client.post("/api/customer/orders/send-to-kitchen", params=visit).json()["id"]

        early = client.post(f"/api/customer/orders/{order_id}/confirm-pickup", params=visit)
        assert early.status_code == 403

        client.patch(f"/api/staff/orders/{order_id}/status", json={"status": "ready"}, headers=kitchen_headers)
        response = client.post(f"/api/customer/orders/{order_id}/confirm-pickup", params=visit)

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_archived_orders_hidden_by_default(self, client, kitchen_headers, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        order_id = client.post("/api/customer/orders/send-to-kitchen", params=visit).json()["id"]
        for new_status in ("completed", "archived"):
            client.patch(f"/api/staff/orders/{order_id}/status", json={"status": new_status}, headers=kitchen_headers)

        assert client.get("/api/customer/orders", params=visit).json() == []

        everything = client.get("/api/customer/orders", params={**visit, "include_archived": "true"}).json()
        assert [o["status"] for o in everything] == ["archived"]

    def test_list_only_own_orders(self, client, waiter_headers, visit):
        client.post("/api/customer/cart/items", params=visit, json=BURGER)
        mine = client.post("/api/customer/orders", params=visit).json()["id"]

        new_code = client.post("/api/staff/tables/1/session", headers=waiter_headers).json()["session_code"]
        other = {"table": "1", "session": new_code}

        assert client.get("/api/customer/orders", params=other).json() == []
        response = client.post(f"/api/customer/orders/{mine}/send-to-kitchen", params=other)
        assert response.status_code == 404
