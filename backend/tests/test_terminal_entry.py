"""
Tests for terminal entry: static QR URL, visitor form and fresh sessions.
"""

import pytest


VISITOR = {"name": "Ana", "phone": "+54 11 5555-1234"}


class TestEntryPage:
    """GET /term/{table_id}."""

    def test_terminal_page(self, client, seed_terminal):
        response = client.get("/term/T-01")
        assert response.status_code == 200
        data = response.json()
        assert data["table_id"] == "T-01"
        assert data["name"] == "Terminal T-01"
        assert data["enter_endpoint"] == "/api/term/T-01/enter"
        assert data["fields"] == ["name", "phone"]

    def test_regular_table_has_no_entry_page(self, client, seed_table):
        assert client.get("/term/1").status_code == 404

    def test_unknown_terminal(self, client):
        assert client.get("/term/T-99").status_code == 404


class TestEnterTerminal:
    """POST /api/term/{table_id}/enter."""

    def test_enter_starts_visit(self, client, seed_terminal, sql_store):
        response = client.post("/api/term/T-01/enter", json=VISITOR)

        assert response.status_code == 201
        data = response.json()
        assert data["table_id"] == "T-01"
        assert data["customer_name"] == "Ana"
        assert data["session_code"].startswith("terminal-T-01-")
        assert f"session={data['session_code']}" in data["menu_url"]

        customer = sql_store.get_session_customer("T-01", data["session_code"])
        assert customer.phone == "541155551234"

    def test_visit_is_allowed_by_guard(self, client, seed_terminal):
        code = client.post("/api/term/T-01/enter", json=VISITOR).json()["session_code"]

        state = client.get("/api/customer/session", params={"table": "T-01", "session": code}).json()

        assert state["state"] == "allowed"

    def test_each_visit_gets_new_code_and_empty_cart(self, client, seed_terminal):
        first = client.post("/api/term/T-01/enter", json=VISITOR).json()["session_code"]
        client.post(
            "/api/customer/cart/items",
            params={"table": "T-01", "session": first},
            json={"menu_item_id": "burger", "item_name": "Burger", "price": "12.50"},
        )

        second = client.post("/api/term/T-01/enter", json={"name": "Luis", "phone": "1144443333"}).json()

        assert second["session_code"] != first
        cart = client.get("/api/customer/cart", params={"table": "T-01", "session": second["session_code"]})
        assert cart.json()["items"] == []

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"name": "", "phone": "1155551234"}, "name"),
            ({"name": "   ", "phone": "1155551234"}, "name"),
            ({"name": "Ana", "phone": "123"}, "phone"),
            ({"name": "Ana", "phone": "1234567890123456"}, "phone"),
            ({"name": "Ana"}, "phone"),
        ],
    )
    def test_invalid_input_names_field(self, client, seed_terminal, body, field):
        response = client.post("/api/term/T-01/enter", json=body)

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["field"] == field
        assert detail["message"]

    def test_invalid_input_mints_nothing(self, client, manager_headers, seed_terminal):
        client.post("/api/term/T-01/enter", json={"name": "", "phone": ""})

        table = client.get("/api/staff/tables/T-01", headers=manager_headers).json()
        assert table["session_active"] is False

    def test_regular_table_rejected(self, client, seed_table):
        response = client.post("/api/term/1/enter", json=VISITOR)
        assert response.status_code == 400

    def test_unknown_terminal(self, client):
        response = client.post("/api/term/T-99/enter", json=VISITOR)
        assert response.status_code == 404

    def test_end_session_blocks_current_visitor(self, client, waiter_headers, seed_terminal):
        code = client.post("/api/term/T-01/enter", json=VISITOR).json()["session_code"]

        ended = client.delete("/api/staff/tables/T-01/session", headers=waiter_headers)
        state = client.get("/api/customer/session", params={"table": "T-01", "session": code}).json()

        assert ended.json()["sessions_ended"] == 1
        assert state["reason"] == "session_ended"
