"""
Tests for the operator CLI.
"""

import pytest
from typer.testing import CliRunner

import cli
import tableside.repositories as repositories
from shared.config.constants import Roles, TableType
from shared.security.auth import verify_jwt
from tableside.repositories import TableRecord
from tableside.services.domain import SessionLifecycleManager

runner = CliRunner()


@pytest.fixture
def cli_store(memory_store, monkeypatch):
    """Route every CLI command to one in-memory store."""
    monkeypatch.setattr(repositories, "open_persistence", lambda backend=None: memory_store)
    return memory_store


class TestStaffToken:
    def test_issues_verifiable_token(self):
        result = runner.invoke(cli.app, ["staff-token", "7", "--role", "waiter"])

        assert result.exit_code == 0
        payload = verify_jwt("".join(result.output.split()))
        assert payload["sub"] == "7"
        assert payload["roles"] == [Roles.WAITER]

    def test_unknown_role(self):
        result = runner.invoke(cli.app, ["staff-token", "7", "--role", "chef"])
        assert result.exit_code == 1


class TestTableCommands:
    def test_seed_creates_demo_tables(self, cli_store):
        result = runner.invoke(cli.app, ["seed"])

        assert result.exit_code == 0
        assert [t.table_id for t in cli_store.list_tables()] == ["1", "2", "3"]

    def test_seed_is_noop_when_tables_exist(self, cli_store):
        cli_store.add_table(TableRecord(table_id="9", name="Table 9"))

        runner.invoke(cli.app, ["seed"])

        assert [t.table_id for t in cli_store.list_tables()] == ["9"]

    def test_tables_lists_catalog(self, cli_store):
        cli_store.add_table(TableRecord(table_id="T1", name="Terminal T1", type=TableType.TERMINAL))

        result = runner.invoke(cli.app, ["tables"])

        assert result.exit_code == 0
        assert "T1" in result.output

    def test_end_terminals(self, cli_store):
        cli_store.add_table(TableRecord(table_id="T1", name="Terminal T1", type=TableType.TERMINAL))
        SessionLifecycleManager(cli_store).mint_terminal_session("T1")

        result = runner.invoke(cli.app, ["end-terminals", "--yes"])

        assert result.exit_code == 0
        assert cli_store.active_sessions("T1") == []

    def test_end_terminals_aborted(self, cli_store):
        cli_store.add_table(TableRecord(table_id="T1", name="Terminal T1", type=TableType.TERMINAL))
        SessionLifecycleManager(cli_store).mint_terminal_session("T1")

        result = runner.invoke(cli.app, ["end-terminals"], input="n\n")

        assert result.exit_code == 1
        assert len(cli_store.active_sessions("T1")) == 1
