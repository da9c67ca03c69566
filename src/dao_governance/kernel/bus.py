"""
In-process Command/Event Bus

Synchronous routing of command envelopes to their handlers, and fan-out of
committed events to subscribers.
"""

from collections import defaultdict
from typing import Callable

from dao_governance.kernel.commands import Command
from dao_governance.kernel.errors import GovernanceError
from dao_governance.kernel.events import Event
from dao_governance.kernel.logging import LogOperation, get_logger
from dao_governance.kernel.metrics import (
    command_duration_seconds,
    commands_processed_total,
    record_governance_error,
)

logger = get_logger(__name__)


CommandHandler = Callable[[Command], list[Event]]
EventHandler = Callable[[Event], None]


class InProcessBus:
    """
    Simple synchronous in-process bus

    Command handlers decide; they never commit. Event handlers see only
    events that are already in the store.
    """

    def __init__(self) -> None:
        self._command_handlers: dict[str, CommandHandler] = {}
        self._event_handlers: defaultdict[str, list[EventHandler]] = defaultdict(list)
        logger.debug("InProcessBus initialized")

    def register_command_handler(
        self, command_type: str, handler: CommandHandler
    ) -> None:
        """
        Register a command handler

        Raises:
            ValueError: If a handler is already registered for this command type
        """
        if command_type in self._command_handlers:
            raise ValueError(
                f"Command handler already registered for {command_type}"
            )
        self._command_handlers[command_type] = handler
        logger.debug("Command handler registered", command_type=command_type)

    def register_event_handler(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type ('*' receives every event)"""
        self._event_handlers[event_type].append(handler)
        logger.debug(
            "Event handler registered",
            event_type=event_type,
            total_handlers=len(self._event_handlers[event_type]),
        )

    def dispatch_command(self, command: Command) -> list[Event]:
        """
        Dispatch a command to its handler

        Returns:
            Events decided by the handler (not yet committed)

        Raises:
            ValueError: If no handler registered for command type
            GovernanceError: If the handler rejects the command
        """
        handler = self._command_handlers.get(command.command_type)
        if not handler:
            raise ValueError(
                f"No handler registered for command type '{command.command_type}'. "
                f"Available handlers: {list(self._command_handlers.keys())}"
            )

        with LogOperation(
            logger,
            "dispatch_command",
            command_type=command.command_type,
            command_id=command.command_id,
            actor_id=command.actor_id,
            block_height=command.block_height,
        ):
            with command_duration_seconds.labels(
                command_type=command.command_type
            ).time():
                try:
                    events = handler(command)
                except GovernanceError as e:
                    commands_processed_total.labels(
                        command_type=command.command_type, status="rejected"
                    ).inc()
                    record_governance_error(e)
                    raise
                except Exception:
                    commands_processed_total.labels(
                        command_type=command.command_type, status="failure"
                    ).inc()
                    raise

            commands_processed_total.labels(
                command_type=command.command_type, status="success"
            ).inc()
            return events

    def publish_event(self, event: Event) -> None:
        """
        Publish a committed event to its subscribers

        Handlers run in registration order. A failing handler is logged and
        skipped; the event stays committed.
        """
        handlers = self._event_handlers.get(event.event_type, []) + self._event_handlers.get(
            "*", []
        )
        if not handlers:
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    "Event handler failed",
                    event_type=event.event_type,
                    event_id=event.event_id,
                    stream_id=event.stream_id,
                    error=str(e),
                    exc_info=True,
                )

    def publish_events(self, events: list[Event]) -> None:
        for event in events:
            self.publish_event(event)

    def get_command_types(self) -> list[str]:
        return list(self._command_handlers.keys())

    def get_event_types(self) -> list[str]:
        return list(self._event_handlers.keys())
