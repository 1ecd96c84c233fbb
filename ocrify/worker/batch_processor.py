from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from ocrify.config.settings import Settings
from ocrify.logging.logger import Log
from ocrify.tracking.exceptions import ValidationFailure
from ocrify.tracking.models import WindowBoundary
from ocrify.tracking.stats import QueueStatsAggregator
from ocrify.worker.file_processor import FileProcessor
from ocrify.worker.models import BatchResult, FileOutcome, FileUpload


class BatchProcessor:
    """Processes a bulk submission with a bounded pool of worker threads.

    Each file is isolated: an error on one file becomes a failed outcome in
    the result and never aborts its siblings.
    """

    def __init__(
        self,
        file_processor: FileProcessor,
        stats: QueueStatsAggregator,
        settings: Settings,
    ) -> None:
        self._file_processor = file_processor
        self._stats = stats
        self._settings = settings

    def process(self, queue_position: str, uploads: Sequence[FileUpload]) -> BatchResult:
        """Run every upload and return per-file outcomes plus totals.

        Raises:
            ValidationFailure: if no files, too many files, or no queue position.
            QueueEntryNotFoundError: if the queue position was never allocated.
        """
        if not uploads:
            raise ValidationFailure("No files uploaded")
        if len(uploads) > self._settings.max_bulk_files:
            raise ValidationFailure(
                f"Too many files: {len(uploads)} (max {self._settings.max_bulk_files})"
            )

        self._stats.record_extraction_window(queue_position, WindowBoundary.START)
        workers = max(1, min(self._settings.bulk_worker_count, len(uploads)))
        Log.info(
            f"Processing {len(uploads)} files for {queue_position} with {workers} workers"
        )

        result = BatchResult(queue_position=queue_position)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ocrify") as pool:
            futures = [
                pool.submit(self._file_processor.process, queue_position, upload)
                for upload in uploads
            ]
            for upload, future in zip(uploads, futures):
                result.outcomes.append(self._collect(upload, future))

        self._stats.record_extraction_window(queue_position, WindowBoundary.END)
        Log.info(
            f"Batch for {queue_position} done: {result.success_count} succeeded, "
            f"{result.fail_count} failed"
        )
        return result

    def _collect(self, upload: FileUpload, future: Future[FileOutcome]) -> FileOutcome:
        try:
            return future.result()
        except Exception as exc:
            Log.exception(f"Processing {upload.original_name} failed: {exc}")
            return FileOutcome(
                original_name=upload.original_name,
                success=False,
                error=str(exc),
            )
