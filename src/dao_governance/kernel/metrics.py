"""
Prometheus metrics collection for DAO Governance.

Counters for command throughput and governance activity, plus a gauge
tracking total token supply.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram, start_http_server

# ============================================================================
# Core Event Store Metrics
# ============================================================================

events_appended_total = Counter(
    "dao_events_appended_total",
    "Total number of events appended to the event store",
    ["stream_type", "event_type"],
)

events_loaded_total = Counter(
    "dao_events_loaded_total",
    "Total number of events loaded from the event store",
    ["stream_type"],
)

stream_version_conflicts_total = Counter(
    "dao_stream_version_conflicts_total",
    "Total number of optimistic locking version conflicts",
    ["stream_type"],
)

# ============================================================================
# Command Processing Metrics
# ============================================================================

command_duration_seconds = Histogram(
    "dao_command_duration_seconds",
    "Duration of command processing in seconds",
    ["command_type"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

commands_processed_total = Counter(
    "dao_commands_processed_total",
    "Total number of commands processed",
    ["command_type", "status"],  # status: success, failure
)

governance_errors_total = Counter(
    "dao_governance_errors_total",
    "Total number of rejected commands by error code",
    ["error", "code"],
)

# ============================================================================
# Governance Metrics
# ============================================================================

proposals_created_total = Counter(
    "dao_proposals_created_total",
    "Total number of proposals created",
)

votes_cast_total = Counter(
    "dao_votes_cast_total",
    "Total number of votes cast",
    ["choice"],
)

vote_weight_total = Counter(
    "dao_vote_weight_total",
    "Total token weight behind cast votes",
    ["choice"],
)

proposals_executed_total = Counter(
    "dao_proposals_executed_total",
    "Total number of executed proposals",
    ["outcome"],  # PASSED, REJECTED
)

# ============================================================================
# Token Metrics
# ============================================================================

token_total_supply = Gauge(
    "dao_token_total_supply",
    "Current total token supply (smallest unit)",
)

token_transfers_total = Counter(
    "dao_token_transfers_total",
    "Total number of successful token transfers",
)

replay_duration_seconds = Histogram(
    "dao_replay_duration_seconds",
    "Duration of state replay from the event store",
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0),
)

# ============================================================================
# Helper Functions
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_command_duration(command_type: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to track command processing duration.

    Args:
        command_type: Type of command being processed

    Returns:
        Decorated function that tracks duration
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.perf_counter() - start
                command_duration_seconds.labels(command_type=command_type).observe(duration)
                commands_processed_total.labels(
                    command_type=command_type, status=status
                ).inc()

        return wrapper

    return decorator


def record_governance_error(error: Exception) -> None:
    """Count a rejected command under its error name and numeric code."""
    code = getattr(error, "code", None)
    governance_errors_total.labels(
        error=type(error).__name__, code=str(code) if code is not None else "none"
    ).inc()


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server.

    Args:
        port: Port to listen on (default: 9090)
    """
    start_http_server(port)
