"""Thread-safe in-process store (STORAGE_BACKEND=memory).

All state lives behind one lock, so every operation is serialized and
atomic. Suitable for tests, local runs and single-process deployments.
"""

import itertools
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from ocrify.storage.base import BaseStore
from ocrify.tracking.exceptions import (
    CounterInvariantError,
    FileRecordNotFoundError,
    IllegalTransitionError,
    QueueEntryNotFoundError,
)
from ocrify.tracking.models import AggregateCounters, FileRecord, FileState, QueueEntry

QUEUE_POSITION_PREFIX = "user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore(BaseStore):
    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._positions = itertools.count(1)
        self._file_ids = itertools.count(1)
        self._entries: dict[str, QueueEntry] = {}
        self._files: dict[int, FileRecord] = {}
        self._aggregate = AggregateCounters()

    # ------------------------------------------------------------------
    # Queue entries
    # ------------------------------------------------------------------

    def allocate_queue_entry(self) -> QueueEntry:
        with self._lock:
            position = f"{QUEUE_POSITION_PREFIX}{next(self._positions)}"
            entry = QueueEntry(queue_position=position, created_at=self._clock())
            self._entries[position] = entry
            self._aggregate = replace(
                self._aggregate, total_users=self._aggregate.total_users + 1
            )
            return entry

    def get_queue_entry(self, queue_position: str) -> QueueEntry:
        with self._lock:
            return self._entry(queue_position)

    def record_file_uploaded(self, queue_position: str) -> QueueEntry:
        with self._lock:
            entry = self._entry(queue_position)
            self._aggregate = replace(
                self._aggregate, total_files=self._aggregate.total_files + 1
            )
            return self._save_entry(replace(entry, files_uploaded=entry.files_uploaded + 1))

    def stamp_extraction_start(self, queue_position: str) -> QueueEntry:
        with self._lock:
            entry = self._entry(queue_position)
            return self._save_entry(replace(entry, extraction_started_at=self._clock()))

    def stamp_extraction_end(self, queue_position: str) -> QueueEntry:
        with self._lock:
            entry = self._entry(queue_position)
            return self._save_entry(
                replace(
                    entry,
                    extraction_ended_at=self._clock(),
                    total_processing_time=self._success_time(queue_position),
                )
            )

    def apply_outcomes(
        self,
        queue_position: str,
        treated: int,
        not_treated: int,
    ) -> QueueEntry:
        with self._lock:
            entry = self._entry(queue_position)
            finished = entry.files_treated + entry.files_not_treated + treated + not_treated
            if finished > entry.files_uploaded:
                raise CounterInvariantError(
                    f"Queue {queue_position}: {finished} finished files would exceed "
                    f"{entry.files_uploaded} uploaded"
                )
            return self._save_entry(
                replace(
                    entry,
                    files_treated=entry.files_treated + treated,
                    files_not_treated=entry.files_not_treated + not_treated,
                    extraction_ended_at=self._clock(),
                    total_processing_time=self._success_time(queue_position),
                )
            )

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
        with self._lock:
            self._entry(queue_position)
            record = FileRecord(
                id=next(self._file_ids),
                original_name=original_name,
                queue_position=queue_position,
                input_type=input_type,
                output_type=output_type,
                started_at=self._clock(),
            )
            self._files[record.id] = record
            return record

    def mark_file_processing(self, file_id: int) -> FileRecord:
        with self._lock:
            record = self._transition(file_id, FileState.PROCESSING)
            self._files[file_id] = record
            return record

    def complete_file_record(
        self,
        file_id: int,
        state: FileState,
        detected_language: str,
        synthesized_name: str | None = None,
    ) -> FileRecord:
        with self._lock:
            record = self._transition(file_id, state)
            ended_at = self._clock()
            duration = (
                (ended_at - record.started_at).total_seconds()
                if record.started_at is not None
                else 0.0
            )
            record = replace(
                record,
                ended_at=ended_at,
                duration_seconds=duration,
                detected_language=detected_language,
                synthesized_name=synthesized_name or record.synthesized_name,
            )
            self._files[file_id] = record
            return record

    def get_file_record(self, file_id: int) -> FileRecord:
        with self._lock:
            return self._file(file_id)

    def list_file_records(self, queue_position: str) -> list[FileRecord]:
        with self._lock:
            records = [r for r in self._files.values() if r.queue_position == queue_position]
        return sorted(records, key=lambda r: r.id, reverse=True)

    def get_aggregate_counters(self) -> AggregateCounters:
        with self._lock:
            return self._aggregate

    # ------------------------------------------------------------------
    # Helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _entry(self, queue_position: str) -> QueueEntry:
        entry = self._entries.get(queue_position)
        if entry is None:
            raise QueueEntryNotFoundError(f"Queue position {queue_position} not found")
        return entry

    def _save_entry(self, entry: QueueEntry) -> QueueEntry:
        self._entries[entry.queue_position] = entry
        return entry

    def _file(self, file_id: int) -> FileRecord:
        record = self._files.get(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File record {file_id} not found")
        return record

    def _transition(self, file_id: int, target: FileState) -> FileRecord:
        record = self._file(file_id)
        if not record.state.can_transition_to(target):
            raise IllegalTransitionError(
                f"File record {file_id} cannot move from {record.state.value} "
                f"to {target.value}"
            )
        return replace(record, state=target)

    def _success_time(self, queue_position: str) -> float:
        return sum(
            r.duration_seconds or 0.0
            for r in self._files.values()
            if r.queue_position == queue_position and r.state is FileState.SUCCESS
        )
