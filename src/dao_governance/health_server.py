"""
Health check HTTP server for liveness and readiness probes.

Reports whether the process is up, whether the event log is readable, and
a ledger/proposal summary with an invariant check.
"""

import argparse
from typing import Any

from flask import Flask, jsonify

from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.errors import InvariantViolation
from dao_governance.kernel.event_store import SQLiteEventStore
from dao_governance.kernel.logging import configure_logging, get_logger

logger = get_logger(__name__)

SERVICE_NAME = "dao-governance"

app = Flask(__name__)

# Set by initialize_health_server()
_engine: Any = None


def initialize_health_server(engine: Any) -> None:
    """
    Attach the engine the endpoints report on.

    Args:
        engine: GovernanceEngine instance
    """
    global _engine
    _engine = engine
    logger.info("Health server initialized")


@app.route("/health/live", methods=["GET"])
def liveness() -> tuple[Any, int]:
    """Liveness probe - the process is running."""
    return jsonify({"status": "alive", "service": SERVICE_NAME}), 200


@app.route("/health/ready", methods=["GET"])
def readiness() -> tuple[Any, int]:
    """
    Readiness probe - the event log can be read.

    Returns:
        200 with the event count if ready, 503 if not
    """
    if _engine is None:
        logger.error("Readiness check failed: engine not initialized")
        return jsonify({"status": "not_ready", "reason": "engine_not_initialized"}), 503

    try:
        event_count = _engine.event_store.count_events()
    except Exception as e:
        logger.error("Readiness check failed: event store unreadable", error=str(e))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "event_store_error",
                    "error": str(e),
                }
            ),
            503,
        )

    return jsonify({"status": "ready", "event_count": event_count}), 200


@app.route("/health", methods=["GET"])
def detailed_health() -> tuple[Any, int]:
    """
    Detailed health - ledger and proposal summary plus invariant status.

    A broken invariant reports 'degraded' with 503.
    """
    health_data: dict[str, Any] = {"status": "healthy", "service": SERVICE_NAME}

    if _engine is None:
        health_data["status"] = "degraded"
        health_data["engine"] = {"status": "not_initialized"}
        return jsonify(health_data), 503

    try:
        health_data["governance"] = _engine.health()
    except Exception as e:
        logger.error("Governance summary failed", error=str(e))
        health_data["status"] = "degraded"
        health_data["governance"] = {"status": "unavailable", "error": str(e)}
        return jsonify(health_data), 503

    try:
        _engine.verify_invariants()
        health_data["invariants"] = {"status": "ok"}
    except InvariantViolation as e:
        logger.error("Invariant check failed", error=str(e))
        health_data["status"] = "degraded"
        health_data["invariants"] = {"status": "violated", "error": str(e)}

    status_code = 200 if health_data["status"] == "healthy" else 503
    return jsonify(health_data), status_code


def run_health_server(port: int = 8080, debug: bool = False) -> None:
    """
    Run the health check server.

    Args:
        port: Port to listen on (default: 8080)
        debug: Enable Flask debug mode (default: False)
    """
    logger.info("Starting health check server", port=port)
    app.run(host="0.0.0.0", port=port, debug=debug)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DAO Governance Health Server")
    parser.add_argument(
        "--db",
        type=str,
        default="dao.db",
        help="SQLite event log to serve health for (default: dao.db)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode (default: False)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs in JSON format (default: False)",
    )
    return parser


def main() -> None:
    """Replay the event log, then serve the health endpoints for it."""
    args = build_parser().parse_args()

    configure_logging(json_output=args.json_logs)

    from dao_governance.engine import GovernanceEngine

    initialize_health_server(
        GovernanceEngine(
            config=GovernanceConfig.from_env(),
            event_store=SQLiteEventStore(args.db),
        )
    )
    run_health_server(port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
