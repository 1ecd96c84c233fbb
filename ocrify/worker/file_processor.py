from ocrify.config.settings import Settings
from ocrify.extraction.base import BaseTextExtractor
from ocrify.extraction.exceptions import ExtractionFailure
from ocrify.logging.logger import Log
from ocrify.naming.synthesizer import build_output_file_name, classify_and_name
from ocrify.tracking.exceptions import OcrifyError
from ocrify.tracking.lifecycle import FileLifecycleTracker
from ocrify.tracking.models import UNKNOWN_LANGUAGE, ExtractionOutcome
from ocrify.tracking.stats import QueueStatsAggregator
from ocrify.worker.models import FileOutcome, FileUpload


class FileProcessor:
    """Runs one uploaded file through extraction, naming and tracking.

    Flow: create record -> count upload -> processing -> extract -> name ->
    complete -> record outcome. An extraction engine error ends the record
    as failed without naming it. Any other interruption still closes the
    record as failed before the error propagates.
    """

    def __init__(
        self,
        extractor: BaseTextExtractor,
        tracker: FileLifecycleTracker,
        stats: QueueStatsAggregator,
        settings: Settings,
    ) -> None:
        self._extractor = extractor
        self._tracker = tracker
        self._stats = stats
        self._settings = settings

    def process(self, queue_position: str, upload: FileUpload) -> FileOutcome:
        output_type = upload.output_type or self._settings.default_output_type
        file_id = self._tracker.create_file_record(
            original_name=upload.original_name,
            queue_position=queue_position,
            input_type=upload.input_type,
            output_type=output_type,
        )
        try:
            return self._run(queue_position, file_id, upload)
        except BaseException:
            self._abandon(file_id)
            raise

    def _run(self, queue_position: str, file_id: int, upload: FileUpload) -> FileOutcome:
        self._stats.record_file_uploaded(queue_position)
        self._tracker.mark_processing(file_id)

        try:
            extraction = self._extractor.extract(upload.payload)
        except ExtractionFailure as exc:
            Log.error(f"Extraction failed for file record {file_id}: {exc}")
            self._tracker.complete_file_record(file_id, ExtractionOutcome.FAILED)
            self._stats.record_outcome(queue_position, success=False)
            return FileOutcome(
                original_name=upload.original_name,
                success=False,
                file_id=file_id,
                detected_language=UNKNOWN_LANGUAGE,
                error=str(exc),
            )

        naming = classify_and_name(extraction.text, upload.extension)
        output_file_name = build_output_file_name(naming.name, upload.extension)
        record = self._tracker.complete_file_record(
            file_id,
            ExtractionOutcome.SUCCESS,
            detected_language=extraction.language,
            synthesized_name=naming.name,
        )
        self._stats.record_outcome(queue_position, success=True)
        Log.info(
            f"File record {file_id} named {output_file_name} "
            f"({naming.document_type.value}, {len(extraction.text)} chars)"
        )
        return FileOutcome(
            original_name=upload.original_name,
            success=True,
            file_id=file_id,
            synthesized_name=naming.name,
            output_file_name=output_file_name,
            detected_language=record.detected_language,
            extracted_text=extraction.text,
        )

    def _abandon(self, file_id: int) -> None:
        """Close an interrupted record as failed; the original error wins."""
        try:
            self._tracker.complete_file_record(file_id, ExtractionOutcome.FAILED)
        except OcrifyError as exc:
            Log.warning(f"File record {file_id} left open after interruption: {exc}")
