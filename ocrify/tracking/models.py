from dataclasses import dataclass
from datetime import datetime
from enum import Enum

UNKNOWN_LANGUAGE = "unknown"


class FileState(str, Enum):
    """Lifecycle state of a single submitted file."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FileState.SUCCESS, FileState.FAILED)

    def can_transition_to(self, target: "FileState") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[FileState, frozenset[FileState]] = {
    FileState.PENDING: frozenset(
        {FileState.PROCESSING, FileState.SUCCESS, FileState.FAILED}
    ),
    FileState.PROCESSING: frozenset({FileState.SUCCESS, FileState.FAILED}),
    FileState.SUCCESS: frozenset(),
    FileState.FAILED: frozenset(),
}


class ExtractionOutcome(str, Enum):
    """Result reported by the text-extraction collaborator."""

    SUCCESS = "success"
    FAILED = "failed"

    @property
    def state(self) -> FileState:
        return FileState(self.value)


class WindowBoundary(str, Enum):
    START = "start"
    END = "end"


@dataclass(frozen=True)
class FileRecord:
    """One submitted file's lifecycle entry."""

    id: int
    original_name: str
    queue_position: str
    input_type: str
    output_type: str
    state: FileState = FileState.PENDING
    synthesized_name: str | None = None
    detected_language: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_seconds: float | None = None


@dataclass(frozen=True)
class QueueEntry:
    """Per-user processing session and its counters."""

    queue_position: str
    files_uploaded: int = 0
    files_treated: int = 0
    files_not_treated: int = 0
    extraction_started_at: datetime | None = None
    extraction_ended_at: datetime | None = None
    total_processing_time: float = 0.0
    created_at: datetime | None = None


@dataclass(frozen=True)
class AggregateCounters:
    """Deployment-wide totals (single logical row)."""

    total_users: int = 0
    total_files: int = 0


@dataclass(frozen=True)
class QueueStats:
    """Read model of a queue entry returned to callers."""

    uploaded: int
    treated: int
    not_treated: int
    total_processing_time_seconds: float

    @classmethod
    def from_entry(cls, entry: QueueEntry) -> "QueueStats":
        return cls(
            uploaded=entry.files_uploaded,
            treated=entry.files_treated,
            not_treated=entry.files_not_treated,
            total_processing_time_seconds=entry.total_processing_time,
        )
