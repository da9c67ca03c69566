"""
Test bus.py logging and metrics integration.

Verifies that the InProcessBus routes, logs and counts commands, and that
subscribers are isolated from each other's failures.
"""

import pytest

from dao_governance.kernel.bus import InProcessBus
from dao_governance.kernel.commands import Command, create_command
from dao_governance.kernel.errors import ZeroAmount
from dao_governance.kernel.events import Event, create_event
from dao_governance.kernel.logging import configure_logging
from dao_governance.kernel.metrics import commands_processed_total, governance_errors_total


def make_command(command_type: str = "TestCommand") -> Command:
    return create_command(
        command_id="cmd-1",
        command_type=command_type,
        actor_id="account1",
        block_height=7,
    )


def make_event(event_type: str = "TestEvent", version: int = 1) -> Event:
    return create_event(
        event_id=f"evt-{version}",
        stream_id="ledger",
        stream_type="ledger",
        event_type=event_type,
        block_height=7,
        command_id="cmd-1",
        actor_id="account1",
        version=version,
    )


def processed(command_type: str, status: str) -> float:
    return commands_processed_total.labels(command_type=command_type, status=status)._value.get()


class TestBusLogging:
    """Test bus logging integration."""

    def setup_method(self) -> None:
        """Configure logging for each test."""
        configure_logging(json_output=False, log_level="DEBUG")

    def test_duplicate_command_handler_rejected(self) -> None:
        bus = InProcessBus()

        def handler(cmd: Command) -> list[Event]:
            return []

        bus.register_command_handler("TestCommand", handler)

        with pytest.raises(ValueError):
            bus.register_command_handler("TestCommand", handler)
        assert bus.get_command_types() == ["TestCommand"]

    def test_dispatch_returns_handler_events(self) -> None:
        bus = InProcessBus()
        event = make_event()
        bus.register_command_handler("OkCommand", lambda cmd: [event])
        before = processed("OkCommand", "success")

        assert bus.dispatch_command(make_command("OkCommand")) == [event]
        assert processed("OkCommand", "success") == before + 1

    def test_rejection_counted_by_error_code(self) -> None:
        bus = InProcessBus()

        def rejecting_handler(cmd: Command) -> list[Event]:
            raise ZeroAmount(0)

        bus.register_command_handler("RejectCommand", rejecting_handler)
        rejected_before = processed("RejectCommand", "rejected")
        errors_before = governance_errors_total.labels(error="ZeroAmount", code="107")._value.get()

        with pytest.raises(ZeroAmount):
            bus.dispatch_command(make_command("RejectCommand"))

        assert processed("RejectCommand", "rejected") == rejected_before + 1
        assert (
            governance_errors_total.labels(error="ZeroAmount", code="107")._value.get()
            == errors_before + 1
        )

    def test_unexpected_failure_counted(self) -> None:
        bus = InProcessBus()

        def failing_handler(cmd: Command) -> list[Event]:
            raise RuntimeError("Test error")

        bus.register_command_handler("FailingCommand", failing_handler)
        before = processed("FailingCommand", "failure")

        with pytest.raises(RuntimeError):
            bus.dispatch_command(make_command("FailingCommand"))
        assert processed("FailingCommand", "failure") == before + 1

    def test_unregistered_command(self) -> None:
        with pytest.raises(ValueError, match="No handler registered"):
            InProcessBus().dispatch_command(make_command("UnknownCommand"))

    def test_event_handler_failure_does_not_stop_others(self) -> None:
        bus = InProcessBus()
        seen = []

        def failing_handler(event: Event) -> None:
            raise ValueError("Handler error")

        bus.register_event_handler("TestEvent", failing_handler)
        bus.register_event_handler("TestEvent", seen.append)

        bus.publish_event(make_event())
        assert len(seen) == 1

    def test_wildcard_handlers_receive_every_event(self) -> None:
        bus = InProcessBus()
        typed, everything = [], []
        bus.register_event_handler("TestEvent", typed.append)
        bus.register_event_handler("*", everything.append)

        bus.publish_events([make_event(version=1), make_event("OtherEvent", version=2)])

        assert [e.version for e in typed] == [1]
        assert [e.event_type for e in everything] == ["TestEvent", "OtherEvent"]
        assert set(bus.get_event_types()) == {"TestEvent", "*"}

    def test_no_handlers_for_event(self) -> None:
        # Publishing into the void is fine
        InProcessBus().publish_event(make_event("UnhandledEvent"))
