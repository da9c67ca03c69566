"""
Event stores - append-only governance log with idempotency

The event store is the source of truth for the whole engine. It provides:
- Append-only semantics (events never modified or deleted)
- Idempotency via command_id (one command commits one batch, once)
- Optimistic locking via stream versioning
- Commit-order replay

InMemoryEventStore is the default. SQLiteEventStore keeps the same log in a
file so a host (or the CLI) can rebuild state after a restart.
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

from dao_governance.kernel.errors import (
    CommandIdempotencyViolation,
    EventStoreError,
    StreamVersionConflict,
)
from dao_governance.kernel.events import Event
from dao_governance.kernel.logging import get_logger
from dao_governance.kernel.metrics import (
    events_appended_total,
    events_loaded_total,
    stream_version_conflicts_total,
)
from dao_governance.kernel.retry import retry_on_sqlite_lock

logger = get_logger(__name__)


class EventStore(Protocol):
    """Protocol for append-only event logs"""

    def append(
        self, stream_id: str, expected_version: int, events: list[Event]
    ) -> list[Event]: ...

    def load_stream(self, stream_id: str) -> list[Event]: ...

    def load_all_events(self) -> list[Event]: ...

    def query_events(
        self,
        *,
        stream_type: str | None = None,
        event_type: str | None = None,
        limit: int | None = None,
    ) -> list[Event]: ...

    def get_stream_version(self, stream_id: str) -> int: ...

    def count_events(self) -> int: ...


def _check_batch(stream_id: str, expected_version: int, events: list[Event]) -> None:
    """Every event must belong to the stream and carry consecutive versions"""
    for offset, event in enumerate(events, start=1):
        if event.stream_id != stream_id:
            raise EventStoreError(
                f"Event {event.event_id} belongs to {event.stream_id}, not {stream_id}"
            )
        if event.version != expected_version + offset:
            raise EventStoreError(
                f"Event {event.event_id} has version {event.version}, "
                f"expected {expected_version + offset}"
            )
    command_ids = {event.command_id for event in events}
    if len(command_ids) != 1:
        raise EventStoreError(f"Batch mixes command ids: {sorted(command_ids)}")


def _record_appended(events: list[Event]) -> None:
    for event in events:
        events_appended_total.labels(
            stream_type=event.stream_type, event_type=event.event_type
        ).inc()


class InMemoryEventStore:
    """
    Process-local event store

    Holds the log in a list. Not thread-safe on its own; the engine lock
    serializes every append.
    """

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._by_command: dict[str, list[Event]] = {}
        self._versions: dict[str, int] = {}

    def append(
        self,
        stream_id: str,
        expected_version: int,
        events: list[Event],
    ) -> list[Event]:
        """
        Append a batch to a stream, all or nothing

        Raises:
            CommandIdempotencyViolation: If the batch's command_id was already committed
            StreamVersionConflict: If the stream head is not expected_version
            EventStoreError: If the batch is malformed
        """
        if not events:
            return []

        command_id = events[0].command_id
        if command_id in self._by_command:
            raise CommandIdempotencyViolation(command_id, self._by_command[command_id])

        current_version = self._versions.get(stream_id, 0)
        if current_version != expected_version:
            stream_version_conflicts_total.labels(stream_type=events[0].stream_type).inc()
            raise StreamVersionConflict(stream_id, expected_version, current_version)

        _check_batch(stream_id, expected_version, events)

        self._events.extend(events)
        self._by_command[command_id] = list(events)
        self._versions[stream_id] = events[-1].version
        _record_appended(events)
        return events

    def load_stream(self, stream_id: str) -> list[Event]:
        return [e for e in self._events if e.stream_id == stream_id]

    def load_all_events(self) -> list[Event]:
        """All events in commit order"""
        return list(self._events)

    def query_events(
        self,
        *,
        stream_type: str | None = None,
        event_type: str | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        matches = [
            e
            for e in self._events
            if (stream_type is None or e.stream_type == stream_type)
            and (event_type is None or e.event_type == event_type)
        ]
        return matches[:limit] if limit is not None else matches

    def get_stream_version(self, stream_id: str) -> int:
        return self._versions.get(stream_id, 0)

    def count_events(self) -> int:
        return len(self._events)


class SQLiteEventStore:
    """
    SQLite-based event store with append-only semantics

    Uses WAL mode for crash safety and concurrent readers. Commit order is
    kept by an autoincrement ``seq`` column, since block height alone does
    not order events committed at the same height.

    Schema:
    - events table: append-only event log
    - Unique constraints: (stream_id, version)
    - Indices: stream_id, event_type, command_id
    """

    _COLUMNS = (
        "event_id, stream_id, stream_type, version, "
        "command_id, event_type, block_height, actor_id, payload_json"
    )

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize event store with SQLite database

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Create tables and indices if they don't exist"""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL UNIQUE,
                    stream_id TEXT NOT NULL,
                    stream_type TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    command_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    block_height INTEGER NOT NULL,
                    actor_id TEXT,
                    payload_json TEXT NOT NULL,

                    UNIQUE(stream_id, version)
                )
            """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_stream "
                "ON events(stream_id, version)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_command ON events(command_id)"
            )

            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection and always close it"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @retry_on_sqlite_lock()
    def append(
        self,
        stream_id: str,
        expected_version: int,
        events: list[Event],
    ) -> list[Event]:
        """
        Append a batch to a stream in one transaction

        Args:
            stream_id: Aggregate identifier ('ledger' or 'proposal-<id>')
            expected_version: Stream version the batch was decided against
            events: Events with consecutive versions after expected_version

        Returns:
            The appended events

        Raises:
            CommandIdempotencyViolation: If the command_id was already committed
            StreamVersionConflict: If the stream version doesn't match expected
            EventStoreError: On malformed batches or other database errors
        """
        if not events:
            return []

        _check_batch(stream_id, expected_version, events)

        command_id = events[0].command_id
        existing = self._get_events_by_command_id(command_id)
        if existing:
            raise CommandIdempotencyViolation(command_id, existing)

        with self._connect() as conn:
            try:
                current_version = self._get_stream_version(conn, stream_id)
                if current_version != expected_version:
                    stream_version_conflicts_total.labels(
                        stream_type=events[0].stream_type
                    ).inc()
                    raise StreamVersionConflict(stream_id, expected_version, current_version)

                for event in events:
                    conn.execute(
                        f"INSERT INTO events ({self._COLUMNS}) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        (
                            event.event_id,
                            event.stream_id,
                            event.stream_type,
                            event.version,
                            event.command_id,
                            event.event_type,
                            event.block_height,
                            event.actor_id,
                            json.dumps(event.payload),
                        ),
                    )

                conn.commit()

            except sqlite3.IntegrityError as e:
                conn.rollback()
                if "stream_id" in str(e).lower():
                    current = self._get_stream_version(conn, stream_id)
                    stream_version_conflicts_total.labels(
                        stream_type=events[0].stream_type
                    ).inc()
                    raise StreamVersionConflict(stream_id, expected_version, current) from e
                raise EventStoreError(f"Failed to append events: {e}") from e

            except sqlite3.OperationalError:
                # Lock contention: let the retry decorator see it
                conn.rollback()
                raise

            except StreamVersionConflict:
                raise

            except Exception as e:
                conn.rollback()
                raise EventStoreError(f"Unexpected error appending events: {e}") from e

        _record_appended(events)
        return events

    def load_stream(self, stream_id: str) -> list[Event]:
        """Events of one stream in version order"""
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {self._COLUMNS} FROM events "
                "WHERE stream_id = ? ORDER BY version ASC",
                (stream_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def load_all_events(self) -> list[Event]:
        """All events in commit order (for replay)"""
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {self._COLUMNS} FROM events ORDER BY seq ASC"
            )
            events = [self._row_to_event(row) for row in cursor.fetchall()]

        for event in events:
            events_loaded_total.labels(stream_type=event.stream_type).inc()
        return events

    def query_events(
        self,
        *,
        stream_type: str | None = None,
        event_type: str | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        """
        Query events by stream type and/or event type, in commit order

        Args:
            stream_type: Filter by stream type ('ledger' or 'proposal')
            event_type: Filter by event type (e.g., 'VoteCast')
            limit: Maximum number of events to return
        """
        conditions = []
        params: list = []

        if stream_type:
            conditions.append("stream_type = ?")
            params.append(stream_type)

        if event_type:
            conditions.append("event_type = ?")
            params.append(event_type)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        query = f"SELECT {self._COLUMNS} FROM events WHERE {where_clause} ORDER BY seq ASC"

        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def get_stream_version(self, stream_id: str) -> int:
        """Current version of a stream (0 if it doesn't exist)"""
        with self._connect() as conn:
            return self._get_stream_version(conn, stream_id)

    def _get_stream_version(self, conn: sqlite3.Connection, stream_id: str) -> int:
        cursor = conn.execute(
            "SELECT MAX(version) FROM events WHERE stream_id = ?",
            (stream_id,),
        )
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    def _get_events_by_command_id(self, command_id: str) -> list[Event]:
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {self._COLUMNS} FROM events "
                "WHERE command_id = ? ORDER BY seq ASC",
                (command_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        return Event(
            event_id=row["event_id"],
            stream_id=row["stream_id"],
            stream_type=row["stream_type"],
            version=row["version"],
            command_id=row["command_id"],
            event_type=row["event_type"],
            block_height=row["block_height"],
            actor_id=row["actor_id"],
            payload=json.loads(row["payload_json"]),
        )

    def count_events(self) -> int:
        """Total number of events in store"""
        with self._connect() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM events")
            return cursor.fetchone()[0]
