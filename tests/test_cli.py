"""
CLI integration tests

Drives the dao command through Typer's CliRunner against a temporary
SQLite log, one process-like invocation per command.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dao_governance.cli.main import app


@pytest.fixture
def runner():
    """Typer CLI test runner"""
    return CliRunner()


@pytest.fixture
def db(runner, tmp_path) -> Path:
    """Initialized log with four holders (1000/2000/3000/4000)"""
    db_path = tmp_path / "dao.db"
    assert runner.invoke(app, ["init", "--db", str(db_path)]).exit_code == 0
    for index, account in enumerate(["account1", "account2", "account3", "account4"]):
        result = runner.invoke(
            app,
            ["token", "mint", "--to", account, "--amount", str((index + 1) * 1000),
             "--db", str(db_path)],
        )
        assert result.exit_code == 0
    return db_path


def invoke(runner, db: Path, *args: str):
    return runner.invoke(app, [*args, "--db", str(db)])


# =============================================================================
# Initialization
# =============================================================================


def test_init_creates_database(runner, tmp_path):
    db_path = tmp_path / "new.db"

    result = runner.invoke(app, ["init", "--db", str(db_path)])

    assert result.exit_code == 0
    assert db_path.exists()
    assert "initialized" in result.stdout.lower()
    assert "51%" in result.stdout


def test_init_refuses_existing_database(runner, tmp_path):
    db_path = tmp_path / "new.db"
    runner.invoke(app, ["init", "--db", str(db_path)])

    result = runner.invoke(app, ["init", "--db", str(db_path)])

    assert result.exit_code == 1


def test_missing_database_is_reported(runner, tmp_path):
    result = runner.invoke(app, ["token", "balance", "alice", "--db", str(tmp_path / "none.db")])

    assert result.exit_code == 1
    assert "not found" in result.output.lower()


# =============================================================================
# Token commands
# =============================================================================


def test_balance_and_info(runner, db):
    result = invoke(runner, db, "token", "balance", "account3")
    assert result.exit_code == 0
    assert "account3: 3000" in result.stdout

    result = invoke(runner, db, "token", "info", "--json")
    assert result.exit_code == 0
    info = json.loads(result.stdout)
    assert info["total_supply"] == 10000
    assert info["symbol"] == "DAO"
    assert info["holders"][0]["account"] == "account4"


def test_transfer(runner, db):
    result = invoke(
        runner, db, "token", "transfer",
        "--from", "account1", "--to", "account2", "--amount", "250", "--caller", "account1",
    )

    assert result.exit_code == 0
    assert "account1 balance: 750" in result.stdout
    assert "account2: 2250" in invoke(runner, db, "token", "balance", "account2").stdout


def test_transfer_by_wrong_caller_fails_with_code(runner, db):
    result = invoke(
        runner, db, "token", "transfer",
        "--from", "account1", "--to", "account2", "--amount", "1", "--caller", "account2",
    )

    assert result.exit_code == 1
    assert "Error 100 (NotAuthorized)" in result.output


def test_zero_mint_fails_with_code(runner, db):
    result = invoke(runner, db, "token", "mint", "--to", "account1", "--amount", "0")

    assert result.exit_code == 1
    assert "Error 107 (ZeroAmount)" in result.output


# =============================================================================
# Proposal lifecycle
# =============================================================================


def test_full_lifecycle(runner, db):
    result = invoke(
        runner, db, "proposal", "create",
        "--creator", "account1", "--title", "Fund audit", "--height", "100",
    )
    assert result.exit_code == 0
    assert "Created proposal: 0" in result.stdout
    assert "blocks 100 to 243" in result.stdout

    for voter, choice in [("account1", "yes"), ("account2", "yes"), ("account3", "no"),
                          ("account4", "yes")]:
        result = invoke(
            runner, db, "proposal", "vote",
            "--id", "0", "--voter", voter, "--choice", choice, "--height", "150",
        )
        assert result.exit_code == 0, result.output

    result = invoke(runner, db, "proposal", "execute", "--id", "0", "--height", "243")
    assert result.exit_code == 1
    assert "ProposalNotEnded" in result.output

    result = invoke(runner, db, "proposal", "execute", "--id", "0", "--height", "244")
    assert result.exit_code == 0
    assert "PASSED" in result.stdout

    result = invoke(runner, db, "proposal", "show", "--id", "0", "--height", "300", "--json")
    shown = json.loads(result.stdout)
    assert shown["state"] == "EXECUTED"
    assert shown["yes_weight"] == 7000
    assert shown["no_weight"] == 3000
    assert shown["passed"] is True
    assert len(shown["votes"]) == 4


def test_double_vote_and_bad_choice(runner, db):
    invoke(runner, db, "proposal", "create", "--creator", "account1", "--title", "t",
           "--height", "10")
    invoke(runner, db, "proposal", "vote", "--id", "0", "--voter", "account1",
           "--choice", "yes", "--height", "11")

    result = invoke(runner, db, "proposal", "vote", "--id", "0", "--voter", "account1",
                    "--choice", "no", "--height", "12")
    assert result.exit_code == 1
    assert "Error 103 (AlreadyVoted)" in result.output

    result = invoke(runner, db, "proposal", "vote", "--id", "0", "--voter", "account2",
                    "--choice", "abstain", "--height", "12")
    assert result.exit_code == 2


def test_list_and_show_missing(runner, db):
    assert "No proposals" in invoke(runner, db, "proposal", "list").stdout

    invoke(runner, db, "proposal", "create", "--creator", "account2", "--title", "Grant",
           "--height", "5")
    result = invoke(runner, db, "proposal", "list", "--height", "5", "--state", "OPEN")
    assert "0: Grant [OPEN]" in result.stdout

    result = invoke(runner, db, "proposal", "show", "--id", "9", "--height", "5")
    assert result.exit_code == 1


def test_health_json(runner, db):
    result = invoke(runner, db, "health", "--json")

    assert result.exit_code == 0
    summary = json.loads(result.stdout)
    assert summary["total_supply"] == 10000
    assert summary["events"] == 4
    assert summary["quorum_threshold"] == 5100
    assert summary["supply_conserved"] is True


def test_config_from_environment(runner, db, monkeypatch):
    monkeypatch.setenv("DAO_VOTING_PERIOD", "10")

    result = invoke(runner, db, "proposal", "create", "--creator", "account1", "--title", "t",
                    "--height", "50")

    assert "blocks 50 to 59" in result.stdout
