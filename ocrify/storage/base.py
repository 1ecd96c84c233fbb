from abc import ABC, abstractmethod

from ocrify.tracking.models import AggregateCounters, FileRecord, FileState, QueueEntry


class BaseStore(ABC):
    """Contract for the persistence collaborator.

    Every mutating method is one atomic operation: it either applies all of
    its changes or none of them. Implementations raise
    ``PersistenceFailure`` for storage errors and the ``ValidationFailure``
    family for unknown keys or illegal changes.
    """

    @abstractmethod
    def allocate_queue_entry(self) -> QueueEntry:
        """Create a queue entry under a never-before-used position.

        Also increments the aggregate user counter.
        """

    @abstractmethod
    def get_queue_entry(self, queue_position: str) -> QueueEntry:
        """Raises:
        QueueEntryNotFoundError: if the position was never allocated.
        """

    @abstractmethod
    def record_file_uploaded(self, queue_position: str) -> QueueEntry:
        """Increment the entry's uploaded counter and the aggregate file counter."""

    @abstractmethod
    def stamp_extraction_start(self, queue_position: str) -> QueueEntry:
        """Set the entry's extraction start timestamp."""

    @abstractmethod
    def stamp_extraction_end(self, queue_position: str) -> QueueEntry:
        """Set the extraction end timestamp and recompute total processing time."""

    @abstractmethod
    def apply_outcomes(
        self,
        queue_position: str,
        treated: int,
        not_treated: int,
    ) -> QueueEntry:
        """Add to treated/not-treated counters, stamp the end, recompute time.

        Raises:
            CounterInvariantError: if treated + not treated would exceed uploaded.
        """

    @abstractmethod
    def create_file_record(
        self,
        original_name: str,
        queue_position: str,
        input_type: str,
        output_type: str,
    ) -> FileRecord:
        """Insert a pending file record with its start timestamp."""

    @abstractmethod
    def mark_file_processing(self, file_id: int) -> FileRecord:
        """Move a pending record to processing."""

    @abstractmethod
    def complete_file_record(
        self,
        file_id: int,
        state: FileState,
        detected_language: str,
        synthesized_name: str | None = None,
    ) -> FileRecord:
        """Move a record to a terminal state, stamping end time and duration.

        Raises:
            FileRecordNotFoundError: if no record has this id.
            IllegalTransitionError: if the record is already terminal.
        """

    @abstractmethod
    def get_file_record(self, file_id: int) -> FileRecord:
        """Raises:
        FileRecordNotFoundError: if no record has this id.
        """

    @abstractmethod
    def list_file_records(self, queue_position: str) -> list[FileRecord]:
        """Return the entry's file records, newest first."""

    @abstractmethod
    def get_aggregate_counters(self) -> AggregateCounters:
        """Return the deployment-wide totals."""
