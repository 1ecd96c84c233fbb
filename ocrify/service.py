from collections.abc import Sequence

from ocrify.config.settings import Settings
from ocrify.extraction.base import BaseTextExtractor
from ocrify.extraction.factory import TextExtractorFactory
from ocrify.naming.models import NamingResult
from ocrify.naming.synthesizer import classify_and_name
from ocrify.storage.base import BaseStore
from ocrify.storage.factory import StoreFactory
from ocrify.tracking.lifecycle import FileLifecycleTracker
from ocrify.tracking.models import (
    AggregateCounters,
    ExtractionOutcome,
    FileRecord,
    QueueStats,
    WindowBoundary,
)
from ocrify.tracking.stats import QueueStatsAggregator
from ocrify.worker.batch_processor import BatchProcessor
from ocrify.worker.file_processor import FileProcessor
from ocrify.worker.models import BatchResult, FileOutcome, FileUpload


class OcrifyService:
    """Entry points for the upload layer.

    The upload layer owns HTTP, files on disk and output rendering; it
    hands text or payloads in and gets names and lifecycle state back.
    """

    def __init__(
        self,
        store: BaseStore,
        extractor: BaseTextExtractor,
        settings: Settings,
    ) -> None:
        self._tracker = FileLifecycleTracker(store)
        self._stats = QueueStatsAggregator(store)
        self._file_processor = FileProcessor(extractor, self._tracker, self._stats, settings)
        self._batch_processor = BatchProcessor(self._file_processor, self._stats, settings)

    def classify_and_name(self, text: str, original_extension: str) -> NamingResult:
        return classify_and_name(text, original_extension)

    def allocate_queue_position(self) -> str:
        return self._stats.allocate_queue_position()

    def create_file_record(
        self,
        original_name: str,
        queue_position: str,
        input_type: str,
        output_type: str,
    ) -> int:
        return self._tracker.create_file_record(
            original_name, queue_position, input_type, output_type
        )

    def complete_file_record(
        self,
        file_id: int,
        outcome: ExtractionOutcome,
        detected_language: str | None = None,
        synthesized_name: str | None = None,
    ) -> FileRecord:
        return self._tracker.complete_file_record(
            file_id, outcome, detected_language, synthesized_name
        )

    def record_file_uploaded(self, queue_position: str) -> None:
        self._stats.record_file_uploaded(queue_position)

    def record_extraction_window(self, queue_position: str, boundary: WindowBoundary) -> None:
        self._stats.record_extraction_window(queue_position, boundary)

    def record_outcome(self, queue_position: str, success: bool) -> None:
        self._stats.record_outcome(queue_position, success)

    def record_outcomes(self, queue_position: str, success_count: int, fail_count: int) -> None:
        self._stats.record_outcomes(queue_position, success_count, fail_count)

    def get_queue_stats(self, queue_position: str) -> QueueStats:
        return self._stats.get_queue_stats(queue_position)

    def get_aggregate_counters(self) -> AggregateCounters:
        return self._stats.get_aggregate_counters()

    def get_file_record(self, file_id: int) -> FileRecord:
        return self._tracker.get_file_record(file_id)

    def list_file_records(self, queue_position: str) -> list[FileRecord]:
        return self._tracker.list_file_records(queue_position)

    def process_file(self, queue_position: str, upload: FileUpload) -> FileOutcome:
        """Single upload: stamps the extraction window around one file."""
        self._stats.record_extraction_window(queue_position, WindowBoundary.START)
        return self._file_processor.process(queue_position, upload)

    def process_batch(self, queue_position: str, uploads: Sequence[FileUpload]) -> BatchResult:
        return self._batch_processor.process(queue_position, uploads)


def build_service(
    settings: Settings,
    store: BaseStore | None = None,
    extractor: BaseTextExtractor | None = None,
) -> OcrifyService:
    """Build an OcrifyService with the configured store and extractor."""
    return OcrifyService(
        store=store if store is not None else StoreFactory.create(settings),
        extractor=extractor if extractor is not None else TextExtractorFactory.create(settings),
        settings=settings,
    )
