"""
Tests for health server

Liveness, readiness and detailed health endpoints over a live engine.
"""

import pytest

from dao_governance import health_server
from dao_governance.engine import GovernanceEngine
from dao_governance.health_server import app, initialize_health_server


@pytest.fixture
def client():
    """Flask test client"""
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def initialized_server(funded_engine: GovernanceEngine):
    """Health server attached to an engine with four holders"""
    initialize_health_server(funded_engine)
    yield funded_engine
    health_server._engine = None


class BrokenStore:
    def count_events(self) -> int:
        raise OSError("disk gone")


def test_initialize_sets_engine(funded_engine):
    initialize_health_server(funded_engine)
    try:
        assert health_server._engine is funded_engine
    finally:
        health_server._engine = None


# =============================================================================
# Liveness
# =============================================================================


def test_liveness_works_without_initialization(client):
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.get_json() == {"status": "alive", "service": "dao-governance"}


# =============================================================================
# Readiness
# =============================================================================


def test_readiness_reports_event_count(client, initialized_server):
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ready", "event_count": 4}


def test_readiness_503_when_not_initialized(client):
    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.get_json()["reason"] == "engine_not_initialized"


def test_readiness_503_when_store_unreadable(client, initialized_server, monkeypatch):
    monkeypatch.setattr(initialized_server, "event_store", BrokenStore())

    response = client.get("/health/ready")

    assert response.status_code == 503
    data = response.get_json()
    assert data["reason"] == "event_store_error"
    assert "disk gone" in data["error"]


# =============================================================================
# Detailed health
# =============================================================================


def test_detailed_health_healthy(client, initialized_server):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "healthy"
    assert data["governance"]["total_supply"] == 10000
    assert data["governance"]["quorum_threshold"] == 5100
    assert data["invariants"] == {"status": "ok"}


def test_detailed_health_degraded_on_broken_invariant(client, initialized_server):
    # Corrupt the projection behind the engine's back
    initialized_server.state.ledger.balances["account1"] += 1

    response = client.get("/health")

    assert response.status_code == 503
    data = response.get_json()
    assert data["status"] == "degraded"
    assert data["invariants"]["status"] == "violated"


def test_detailed_health_503_when_not_initialized(client):
    response = client.get("/health")

    assert response.status_code == 503
    assert response.get_json()["engine"] == {"status": "not_initialized"}


# =============================================================================
# Entry point
# =============================================================================


def test_parser_defaults():
    args = health_server.build_parser().parse_args([])

    assert (args.db, args.port, args.debug, args.json_logs) == ("dao.db", 8080, False, False)


def test_main_serves_replayed_log(temp_db, config, monkeypatch):
    from dao_governance.kernel.event_store import SQLiteEventStore

    GovernanceEngine(config=config, event_store=SQLiteEventStore(temp_db)).mint("account1", 7)
    started = {}
    monkeypatch.setattr(
        health_server,
        "run_health_server",
        lambda port, debug: started.update(port=port, debug=debug),
    )
    monkeypatch.setattr("sys.argv", ["dao-health", "--db", str(temp_db), "--port", "8181"])

    try:
        health_server.main()
        assert started == {"port": 8181, "debug": False}
        assert health_server._engine.total_supply() == 7
    finally:
        health_server._engine = None
