"""
Prometheus metrics server for DAO Governance.

Starts an HTTP server exposing the dao_* metrics at /metrics. With --db it
also replays that event log so the supply gauge starts from the stored
state.

Usage:
    python -m dao_governance.metrics_server --port 9090 --db dao.db
"""

import argparse
import time

from dao_governance.kernel.logging import configure_logging, get_logger
from dao_governance.kernel.metrics import start_metrics_server

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DAO Governance Metrics Server")
    parser.add_argument(
        "--port",
        type=int,
        default=9090,
        help="Port to listen on (default: 9090)",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="SQLite event log to replay on startup (optional)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs in JSON format (default: False)",
    )
    return parser


def main() -> None:
    """
    Start the Prometheus metrics server.

    Serves http://0.0.0.0:<port>/metrics in Prometheus text format until
    interrupted.
    """
    args = build_parser().parse_args()

    configure_logging(json_output=args.json_logs, log_level=args.log_level)

    if args.db:
        from dao_governance.engine import GovernanceEngine
        from dao_governance.kernel.config import GovernanceConfig
        from dao_governance.kernel.event_store import SQLiteEventStore

        GovernanceEngine(
            config=GovernanceConfig.from_env(),
            event_store=SQLiteEventStore(args.db),
        )

    logger.info(
        "Starting Prometheus metrics server",
        port=args.port,
        endpoint=f"http://0.0.0.0:{args.port}/metrics",
    )

    start_metrics_server(port=args.port)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down metrics server")


if __name__ == "__main__":
    main()
