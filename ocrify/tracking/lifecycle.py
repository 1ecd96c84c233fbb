from ocrify.logging.logger import Log
from ocrify.storage.base import BaseStore
from ocrify.tracking.exceptions import ValidationFailure
from ocrify.tracking.models import UNKNOWN_LANGUAGE, ExtractionOutcome, FileRecord


class FileLifecycleTracker:
    """Per-file state machine: pending -> processing -> success | failed.

    A record reaches a terminal state exactly once; re-processing a file
    means creating a new record.
    """

    def __init__(self, store: BaseStore) -> None:
        self._store = store

    def create_file_record(
        self,
        original_name: str,
        queue_position: str,
        input_type: str,
        output_type: str,
    ) -> int:
        """Create a pending record and return its id.

        Raises:
            ValidationFailure: if the name or queue position is missing.
            QueueEntryNotFoundError: if the queue position was never allocated.
        """
        if not original_name or not original_name.strip():
            raise ValidationFailure("Original file name is required")
        if not queue_position:
            raise ValidationFailure("Queue position is required")
        record = self._store.create_file_record(
            original_name=original_name,
            queue_position=queue_position,
            input_type=input_type,
            output_type=output_type,
        )
        Log.info(f"File record {record.id} created for {queue_position}: {original_name}")
        return record.id

    def mark_processing(self, file_id: int) -> FileRecord:
        record = self._store.mark_file_processing(file_id)
        Log.debug(f"File record {file_id} marked as processing")
        return record

    def complete_file_record(
        self,
        file_id: int,
        outcome: ExtractionOutcome,
        detected_language: str | None = None,
        synthesized_name: str | None = None,
    ) -> FileRecord:
        """Move the record to its terminal state, stamping end time and duration.

        Failed records always get the ``unknown`` language and keep no name.

        Raises:
            FileRecordNotFoundError: if the id is unknown.
            IllegalTransitionError: if the record already completed.
        """
        if outcome is ExtractionOutcome.FAILED:
            language = UNKNOWN_LANGUAGE
            synthesized_name = None
        else:
            language = detected_language or UNKNOWN_LANGUAGE
        record = self._store.complete_file_record(
            file_id,
            state=outcome.state,
            detected_language=language,
            synthesized_name=synthesized_name,
        )
        Log.info(
            f"File record {file_id} completed as {record.state.value} "
            f"in {record.duration_seconds or 0.0:.3f}s"
        )
        return record

    def get_file_record(self, file_id: int) -> FileRecord:
        return self._store.get_file_record(file_id)

    def list_file_records(self, queue_position: str) -> list[FileRecord]:
        return self._store.list_file_records(queue_position)
