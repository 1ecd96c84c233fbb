from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, NoReturn

import psycopg
from psycopg.rows import dict_row

from ocrify.database.connection import get_connection
from ocrify.storage.base import BaseStore
from ocrify.tracking.exceptions import (
    CounterInvariantError,
    FileRecordNotFoundError,
    IllegalTransitionError,
    PersistenceFailure,
    QueueEntryNotFoundError,
)
from ocrify.tracking.models import AggregateCounters, FileRecord, FileState, QueueEntry

_QUEUE_COLUMNS = """
    queue_position, files_uploaded, files_treated, files_not_treated,
    extraction_started_at, extraction_ended_at, total_processing_time, created_at
"""

_FILE_COLUMNS = """
    id, original_name, queue_position, synthesized_name, input_type, output_type,
    detected_language, started_at, ended_at, duration_seconds, state
"""

_SUCCESS_TIME_SUBQUERY = """
    (SELECT COALESCE(SUM(duration_seconds), 0)
     FROM file_records
     WHERE queue_position = %(queue_position)s AND state = 'success')
"""

# Upserts: the singleton row is recreated if it went missing.
_BUMP_TOTAL_USERS = """
    INSERT INTO aggregate_counters (id, total_users) VALUES (1, 1)
    ON CONFLICT (id) DO UPDATE
    SET total_users = aggregate_counters.total_users + 1
"""

_BUMP_TOTAL_FILES = """
    INSERT INTO aggregate_counters (id, total_files) VALUES (1, 1)
    ON CONFLICT (id) DO UPDATE
    SET total_files = aggregate_counters.total_files + 1
"""


class PostgresStore(BaseStore):
    """Persistence on PostgreSQL (STORAGE_BACKEND=postgres).

    Each public method runs in a single transaction. Updates to a queue
    entry lock its row first, so concurrent completions for the same entry
    are applied one after the other.
    """

    @contextmanager
    def _transaction(self) -> Generator[psycopg.Connection[Any], None, None]:
        try:
            with get_connection() as conn:
                try:
                    yield conn
                except BaseException:
                    conn.rollback()
                    raise
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceFailure(f"Storage operation failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Queue entries
    # ------------------------------------------------------------------

    def allocate_queue_entry(self) -> QueueEntry:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO queue_entries (queue_position)
                    VALUES ('user' || nextval('queue_position_seq'))
                    RETURNING {_QUEUE_COLUMNS}
                    """
                )
                row = cur.fetchone()
                cur.execute(_BUMP_TOTAL_USERS)
        if row is None:
            raise PersistenceFailure("Queue entry insert returned no row")
        return _row_to_queue_entry(row)

    def get_queue_entry(self, queue_position: str) -> QueueEntry:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_QUEUE_COLUMNS} FROM queue_entries WHERE queue_position = %s",
                    (queue_position,),
                )
                row = cur.fetchone()
        if row is None:
            raise QueueEntryNotFoundError(f"Queue position {queue_position} not found")
        return _row_to_queue_entry(row)

    def record_file_uploaded(self, queue_position: str) -> QueueEntry:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE queue_entries
                    SET files_uploaded = files_uploaded + 1
                    WHERE queue_position = %s
                    RETURNING {_QUEUE_COLUMNS}
                    """,
                    (queue_position,),
                )
                row = cur.fetchone()
                if row is None:
                    raise QueueEntryNotFoundError(
                        f"Queue position {queue_position} not found"
                    )
                cur.execute(_BUMP_TOTAL_FILES)
        return _row_to_queue_entry(row)

    def stamp_extraction_start(self, queue_position: str) -> QueueEntry:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE queue_entries
                    SET extraction_started_at = NOW()
                    WHERE queue_position = %s
                    RETURNING {_QUEUE_COLUMNS}
                    """,
                    (queue_position,),
                )
                row = cur.fetchone()
        if row is None:
            raise QueueEntryNotFoundError(f"Queue position {queue_position} not found")
        return _row_to_queue_entry(row)

    def stamp_extraction_end(self, queue_position: str) -> QueueEntry:
        return self._finish(queue_position, treated=0, not_treated=0)

    def apply_outcomes(
        self,
        queue_position: str,
        treated: int,
        not_treated: int,
    ) -> QueueEntry:
        return self._finish(queue_position, treated=treated, not_treated=not_treated)

    def _finish(self, queue_position: str, treated: int, not_treated: int) -> QueueEntry:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                # Row lock first: the recomputation below then sees every
                # completion committed before this entry became ours.
                cur.execute(
                    """
                    SELECT files_uploaded, files_treated, files_not_treated
                    FROM queue_entries
                    WHERE queue_position = %s
                    FOR UPDATE
                    """,
                    (queue_position,),
                )
                current = cur.fetchone()
                if current is None:
                    raise QueueEntryNotFoundError(
                        f"Queue position {queue_position} not found"
                    )
                finished = (
                    current["files_treated"]
                    + current["files_not_treated"]
                    + treated
                    + not_treated
                )
                if finished > current["files_uploaded"]:
                    raise CounterInvariantError(
                        f"Queue {queue_position}: {finished} finished files would exceed "
                        f"{current['files_uploaded']} uploaded"
                    )
                cur.execute(
                    f"""
                    UPDATE queue_entries
                    SET files_treated = files_treated + %(treated)s,
                        files_not_treated = files_not_treated + %(not_treated)s,
                        extraction_ended_at = NOW(),
                        total_processing_time = {_SUCCESS_TIME_SUBQUERY}
                    WHERE queue_position = %(queue_position)s
                    RETURNING {_QUEUE_COLUMNS}
                    """,
                    {
                        "treated": treated,
                        "not_treated": not_treated,
                        "queue_position": queue_position,
                    },
                )
                row = cur.fetchone()
        if row is None:
            raise QueueEntryNotFoundError(f"Queue position {queue_position} not found")
        return _row_to_queue_entry(row)

    # ------------------------------------------------------------------
    # File records
    # ------------------------------------------------------------------

    def create_file_record(
        self,
        original_name: str,
        queue_position: str,
        input_type: str,
        output_type: str,
    ) -> FileRecord:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT 1 FROM queue_entries WHERE queue_position = %s",
                    (queue_position,),
                )
                if cur.fetchone() is None:
                    raise QueueEntryNotFoundError(
                        f"Queue position {queue_position} not found"
                    )
                cur.execute(
                    f"""
                    INSERT INTO file_records
                        (original_name, queue_position, input_type, output_type,
                         started_at, state)
                    VALUES (%s, %s, %s, %s, NOW(), 'pending')
                    RETURNING {_FILE_COLUMNS}
                    """,
                    (original_name, queue_position, input_type, output_type),
                )
                row = cur.fetchone()
        if row is None:
            raise PersistenceFailure("File record insert returned no row")
        return _row_to_file_record(row)

    def mark_file_processing(self, file_id: int) -> FileRecord:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE file_records
                    SET state = 'processing'
                    WHERE id = %s AND state = 'pending'
                    RETURNING {_FILE_COLUMNS}
                    """,
                    (file_id,),
                )
                row = cur.fetchone()
                if row is None:
                    self._raise_rejected_transition(cur, file_id, FileState.PROCESSING)
        return _row_to_file_record(row)

    def complete_file_record(
        self,
        file_id: int,
        state: FileState,
        detected_language: str,
        synthesized_name: str | None = None,
    ) -> FileRecord:
        sources = [s.value for s in FileState if s.can_transition_to(state)]
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE file_records
                    SET state = %(state)s,
                        ended_at = NOW(),
                        duration_seconds = EXTRACT(EPOCH FROM (NOW() - started_at)),
                        detected_language = %(detected_language)s,
                        synthesized_name = COALESCE(%(synthesized_name)s, synthesized_name)
                    WHERE id = %(file_id)s AND state = ANY(%(sources)s)
                    RETURNING {_FILE_COLUMNS}
                    """,
                    {
                        "state": state.value,
                        "detected_language": detected_language,
                        "synthesized_name": synthesized_name,
                        "file_id": file_id,
                        "sources": sources,
                    },
                )
                row = cur.fetchone()
                if row is None:
                    self._raise_rejected_transition(cur, file_id, state)
        return _row_to_file_record(row)

    def _raise_rejected_transition(
        self,
        cur: psycopg.Cursor[Any],
        file_id: int,
        target: FileState,
    ) -> NoReturn:
        cur.execute("SELECT state FROM file_records WHERE id = %s", (file_id,))
        current = cur.fetchone()
        if current is None:
            raise FileRecordNotFoundError(f"File record {file_id} not found")
        raise IllegalTransitionError(
            f"File record {file_id} cannot move from {current['state']} to {target.value}"
        )

    def get_file_record(self, file_id: int) -> FileRecord:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_FILE_COLUMNS} FROM file_records WHERE id = %s",
                    (file_id,),
                )
                row = cur.fetchone()
        if row is None:
            raise FileRecordNotFoundError(f"File record {file_id} not found")
        return _row_to_file_record(row)

    def list_file_records(self, queue_position: str) -> list[FileRecord]:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_FILE_COLUMNS}
                    FROM file_records
                    WHERE queue_position = %s
                    ORDER BY id DESC
                    """,
                    (queue_position,),
                )
                rows = cur.fetchall()
        return [_row_to_file_record(row) for row in rows]

    def get_aggregate_counters(self) -> AggregateCounters:
        with self._transaction() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT total_users, total_files FROM aggregate_counters WHERE id = 1"
                )
                row = cur.fetchone()
        if row is None:
            return AggregateCounters()
        return AggregateCounters(total_users=row["total_users"], total_files=row["total_files"])


def _row_to_queue_entry(row: dict[str, Any]) -> QueueEntry:
    return QueueEntry(
        queue_position=row["queue_position"],
        files_uploaded=row["files_uploaded"],
        files_treated=row["files_treated"],
        files_not_treated=row["files_not_treated"],
        extraction_started_at=row["extraction_started_at"],
        extraction_ended_at=row["extraction_ended_at"],
        total_processing_time=float(row["total_processing_time"]),
        created_at=row["created_at"],
    )


def _row_to_file_record(row: dict[str, Any]) -> FileRecord:
    duration = row["duration_seconds"]
    return FileRecord(
        id=row["id"],
        original_name=row["original_name"],
        queue_position=row["queue_position"],
        synthesized_name=row["synthesized_name"],
        input_type=row["input_type"],
        output_type=row["output_type"],
        detected_language=row["detected_language"],
        started_at=row["started_at"],
        ended_at=row["ended_at"],
        duration_seconds=float(duration) if duration is not None else None,
        state=FileState(row["state"]),
    )
