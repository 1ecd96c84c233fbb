from ocrify.logging.logger import Log
from ocrify.storage.base import BaseStore
from ocrify.tracking.exceptions import ValidationFailure
from ocrify.tracking.models import AggregateCounters, QueueStats, WindowBoundary


class QueueStatsAggregator:
    """Allocates queue positions and keeps per-user and deployment counters.

    Total processing time is always recomputed from the successful file
    records of the entry rather than accumulated, so retried or partially
    failed batches cannot double-count.
    """

    def __init__(self, store: BaseStore) -> None:
        self._store = store

    def allocate_queue_position(self) -> str:
        entry = self._store.allocate_queue_entry()
        Log.info(f"Allocated queue position {entry.queue_position}")
        return entry.queue_position

    def record_file_uploaded(self, queue_position: str) -> None:
        self._require_position(queue_position)
        self._store.record_file_uploaded(queue_position)

    def record_extraction_window(
        self,
        queue_position: str,
        boundary: WindowBoundary,
    ) -> None:
        self._require_position(queue_position)
        if boundary is WindowBoundary.START:
            self._store.stamp_extraction_start(queue_position)
        else:
            entry = self._store.stamp_extraction_end(queue_position)
            Log.debug(
                f"Queue {queue_position} processing time now "
                f"{entry.total_processing_time:.3f}s"
            )

    def record_outcome(self, queue_position: str, success: bool) -> None:
        if success:
            self.record_outcomes(queue_position, success_count=1, fail_count=0)
        else:
            self.record_outcomes(queue_position, success_count=0, fail_count=1)

    def record_outcomes(
        self,
        queue_position: str,
        success_count: int,
        fail_count: int,
    ) -> None:
        """Add a batch of outcomes to the entry's treated/not-treated counters.

        Raises:
            ValidationFailure: on negative counts or a missing position.
            CounterInvariantError: if the counts exceed files uploaded.
        """
        self._require_position(queue_position)
        if success_count < 0 or fail_count < 0:
            raise ValidationFailure(
                f"Outcome counts must not be negative: {success_count}, {fail_count}"
            )
        entry = self._store.apply_outcomes(
            queue_position,
            treated=success_count,
            not_treated=fail_count,
        )
        Log.info(
            f"Queue {queue_position}: treated={entry.files_treated} "
            f"not_treated={entry.files_not_treated} uploaded={entry.files_uploaded}"
        )

    def get_queue_stats(self, queue_position: str) -> QueueStats:
        self._require_position(queue_position)
        return QueueStats.from_entry(self._store.get_queue_entry(queue_position))

    def get_aggregate_counters(self) -> AggregateCounters:
        return self._store.get_aggregate_counters()

    def _require_position(self, queue_position: str) -> None:
        if not queue_position:
            raise ValidationFailure("Queue position is required")
