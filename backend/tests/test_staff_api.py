"""
Tests for the staff API: tables, sessions and orders.
"""

from decimal import Decimal

from shared.config.constants import OrderStatus
from tableside.repositories import OrderLine


class TestStaffAuth:
    """Staff endpoints need a valid token with a suitable role."""

    def test_missing_token(self, client):
        response = client.get("/api/staff/tables")
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/staff/tables", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_kitchen_cannot_start_sessions(self, client, kitchen_headers, seed_table):
        response = client.post("/api/staff/tables/1/session", headers=kitchen_headers)
        assert response.status_code == 403

    def test_waiter_cannot_create_tables(self, client, waiter_headers):
        response = client.post("/api/staff/tables", json={"table_id": "9"}, headers=waiter_headers)
        assert response.status_code == 403


class TestTableCatalog:
    """Registering, listing and deleting tables."""

    def test_create_regular_table(self, client, manager_headers):
        response = client.post(
            "/api/staff/tables",
            json={"table_id": "7", "seats": 6},
            headers=manager_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["table_id"] == "7"
        assert data["name"] == "Table 7"
        assert data["type"] == "regular"
        assert data["seats"] == 6
        assert data["status"] == "available"
        assert data["session_active"] is False

    def test_create_terminal_drops_seats(self, client, manager_headers):
        response = client.post(
            "/api/staff/tables",
            json={"table_id": "T-09", "type": "terminal", "seats": 4},
            headers=manager_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Terminal T-09"
        assert data["seats"] is None

    def test_duplicate_table(self, client, manager_headers, seed_table):
        response = client.post("/api/staff/tables", json={"table_id": "1"}, headers=manager_headers)
        assert response.status_code == 409

    def test_invalid_table_id(self, client, manager_headers):
        response = client.post("/api/staff/tables", json={"table_id": "a b"}, headers=manager_headers)
        assert response.status_code == 400

    def test_list_tables(self, client, waiter_headers, seed_table, seed_terminal):
        response = client.get("/api/staff/tables", headers=waiter_headers)
        assert response.status_code == 200
        assert {t["table_id"] for t in response.json()} == {"1", "T-01"}

    def test_list_by_type(self, client, waiter_headers, seed_table, seed_terminal):
        response = client.get("/api/staff/tables", params={"type": "terminal"}, headers=waiter_headers)
        assert [t["table_id"] for t in response.json()] == ["T-01"]

    def test_get_unknown_table(self, client, waiter_headers):
        response = client.get("/api/staff/tables/404", headers=waiter_headers)
        assert response.status_code == 404

    def test_update_status(self, client, waiter_headers, seed_table):
        response = client.patch(
            "/api/staff/tables/1/status",
            json={"status": "occupied"},
            headers=waiter_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "occupied"

    def test_delete_table(self, client, manager_headers, seed_table):
        response = client.delete("/api/staff/tables/1", headers=manager_headers)
        assert response.status_code == 200
        assert response.json() == {"table_id": "1", "deleted": True, "sessions_ended": 0}

        assert client.get("/api/staff/tables/1", headers=manager_headers).status_code == 404

    def test_delete_live_terminal_needs_confirm(self, client, manager_headers, seed_terminal):
        entered = client.post("/api/term/T-01/enter", json={"name": "Ana", "phone": "1155551234"})
        assert entered.status_code == 201

        response = client.delete("/api/staff/tables/T-01", headers=manager_headers)
        assert response.status_code == 428

        response = client.delete("/api/staff/tables/T-01", params={"confirm": "true"}, headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["sessions_ended"] == 1


class TestSessions:
    """Starting and ending table sessions."""

    def test_start_regular_session(self, client, waiter_headers, seed_table):
        response = client.post("/api/staff/tables/1/session", headers=waiter_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["table_type"] == "regular"
        assert data["session_code"].startswith("1-")
        assert data["session_code"] in data["menu_url"]
        assert data["qr_image"].startswith("data:image/png;base64,")

        table = client.get("/api/staff/tables/1", headers=waiter_headers).json()
        assert table["session_active"] is True

    def test_start_terminal_returns_static_url(self, client, waiter_headers, seed_terminal):
        response = client.post("/api/staff/tables/T-01/session", headers=waiter_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["session_code"] is None
        assert data["menu_url"].endswith("/term/T-01")

        table = client.get("/api/staff/tables/T-01", headers=waiter_headers).json()
        assert table["session_active"] is False

    def test_start_unknown_table(self, client, waiter_headers):
        response = client.post("/api/staff/tables/99/session", headers=waiter_headers)
        assert response.status_code == 404

    def test_end_session_idempotent(self, client, waiter_headers, seed_table):
        client.post("/api/staff/tables/1/session", headers=waiter_headers)

        first = client.delete("/api/staff/tables/1/session", headers=waiter_headers)
        second = client.delete("/api/staff/tables/1/session", headers=waiter_headers)

        assert first.json()["sessions_ended"] == 1
        assert second.status_code == 200
        assert second.json()["sessions_ended"] == 0

    def test_restart_blocks_previous_code(self, client, waiter_headers, seed_table):
        old = client.post("/api/staff/tables/1/session", headers=waiter_headers).json()["session_code"]
        new = client.post("/api/staff/tables/1/session", headers=waiter_headers).json()["session_code"]

        old_state = client.get("/api/customer/session", params={"table": "1", "session": old}).json()
        new_state = client.get("/api/customer/session", params={"table": "1", "session": new}).json()

        assert old_state["state"] == "blocked"
        assert new_state["state"] == "allowed"

    def test_end_all_terminals(self, client, manager_headers, seed_table, seed_terminal):
        client.post("/api/staff/tables/1/session", headers=manager_headers)
        client.post("/api/term/T-01/enter", json={"name": "Ana", "phone": "1155551234"})

        response = client.post("/api/staff/terminals/end-all", headers=manager_headers)
        assert response.status_code == 428

        response = client.post("/api/staff/terminals/end-all", params={"confirm": "true"}, headers=manager_headers)
        assert response.status_code == 200
        assert response.json() == {"count": 1, "table_ids": ["T-01"]}

        assert client.get("/api/staff/tables/1", headers=manager_headers).json()["session_active"] is True

    def test_end_all_with_nothing_active(self, client, manager_headers, seed_terminal):
        response = client.post("/api/staff/terminals/end-all", headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["count"] == 0


class TestStaffOrders:
    """Kitchen and floor staff moving orders."""

    def _order(self, sql_store, status=OrderStatus.PENDING):
        return sql_store.insert_order(
            table_number="1",
            session_code="1-100-aaaaaaaaaa",
            status=status,
            total=Decimal("25.00"),
            estimated_minutes=15,
            items=[OrderLine("burger", "Burger", Decimal("12.50"), 2)],
        )

    def test_list_orders(self, client, kitchen_headers, sql_store):
        order = self._order(sql_store)

        response = client.get("/api/staff/orders", headers=kitchen_headers)

        assert response.status_code == 200
        data = response.json()
        assert [o["id"] for o in data] == [order.id]
        assert Decimal(data[0]["total"]) == Decimal("25.00")
        assert data[0]["items"][0]["quantity"] == 2

    def test_kitchen_moves_order(self, client, kitchen_headers, sql_store):
        order = self._order(sql_store, status=OrderStatus.PREPARING)

        response = client.patch(
            f"/api/staff/orders/{order.id}/status",
            json={"status": "ready"},
            headers=kitchen_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_invalid_transition(self, client, kitchen_headers, sql_store):
        order = self._order(sql_store)

        response = client.patch(
            f"/api/staff/orders/{order.id}/status",
            json={"status": "completed"},
            headers=kitchen_headers,
        )

        assert response.status_code == 400

    def test_archived_hidden_by_default(self, client, kitchen_headers, sql_store):
        order = self._order(sql_store, status=OrderStatus.ARCHIVED)

        active = client.get("/api/staff/orders", headers=kitchen_headers).json()
        everything = client.get(
            "/api/staff/orders", params={"include_archived": "true"}, headers=kitchen_headers
        ).json()

        assert active == []
        assert [o["id"] for o in everything] == [order.id]

    def test_replace_items(self, client, waiter_headers, sql_store):
        order = self._order(sql_store)

        response = client.put(
            f"/api/staff/orders/{order.id}/items",
            json={"items": [{"menu_item_id": "tea", "item_name": "Tea", "price": "2.50", "quantity": 2}]},
            headers=waiter_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total"]) == Decimal("5.00")
        assert [i["menu_item_id"] for i in data["items"]] == ["tea"]

    def test_unknown_order(self, client, kitchen_headers):
        response = client.get("/api/staff/orders/999", headers=kitchen_headers)
        assert response.status_code == 404


class TestCustomerLookup:
    """Managers look up visitors recorded at terminal entry."""

    def _enter(self, client, name, phone):
        return client.post("/api/term/T-01/enter", json={"name": name, "phone": phone}).json()["session_code"]

    def test_list_and_search_by_phone(self, client, manager_headers, seed_terminal):
        self._enter(client, "Ana", "+54 11 5555-1234")
        self._enter(client, "Luis", "11 4444-3333")

        everyone = client.get("/api/staff/customers", headers=manager_headers)
        assert everyone.status_code == 200
        assert [c["name"] for c in everyone.json()] == ["Luis", "Ana"]

        found = client.get("/api/staff/customers", params={"phone": "5555-1234"}, headers=manager_headers).json()
        assert [c["name"] for c in found] == ["Ana"]
        assert found[0]["table_id"] == "T-01"

    def test_lookup_by_visit(self, client, manager_headers, seed_terminal):
        code = self._enter(client, "Ana", "1155551234")

        response = client.get(f"/api/staff/customers/T-01/{code}", headers=manager_headers)

        assert response.status_code == 200
        assert response.json()["phone"] == "1155551234"
        assert response.json()["created_at"] is not None

    def test_unknown_visit(self, client, manager_headers, seed_terminal):
        response = client.get("/api/staff/customers/T-01/terminal-T-01-0-missing", headers=manager_headers)
        assert response.status_code == 404

    def test_waiter_forbidden(self, client, waiter_headers):
        assert client.get("/api/staff/customers", headers=waiter_headers).status_code == 403

    def test_phone_without_digits(self, client, manager_headers):
        response = client.get("/api/staff/customers", params={"phone": "abc"}, headers=manager_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "phone"
