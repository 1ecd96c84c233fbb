from unittest.mock import MagicMock

import pytest

from ocrify.config.settings import Settings
from ocrify.extraction.exceptions import ExtractionFailure
from ocrify.extraction.models import TextExtraction
from ocrify.storage.memory_store import MemoryStore
from ocrify.tracking.exceptions import ValidationFailure
from ocrify.tracking.lifecycle import FileLifecycleTracker
from ocrify.tracking.models import FileState
from ocrify.tracking.stats import QueueStatsAggregator
from ocrify.worker.file_processor import FileProcessor
from ocrify.worker.models import FileUpload

INVOICE_TEXT = "INVOICE\nFrom: Acme Corp\nTotal: $123.45\n01/02/2023"


def _make_processor(
    store: MemoryStore, settings: Settings, extractor: MagicMock
) -> FileProcessor:
    return FileProcessor(
        extractor=extractor,
        tracker=FileLifecycleTracker(store),
        stats=QueueStatsAggregator(store),
        settings=settings,
    )


class TestFileUpload:
    def test_extension_and_input_type(self) -> None:
        upload = FileUpload("Scan.Final.jpeg", b"")
        assert upload.extension == ".jpeg"
        assert upload.input_type == "JPEG"

    def test_no_extension(self) -> None:
        upload = FileUpload("README", b"")
        assert upload.extension == ""
        assert upload.input_type == ""


class TestFileProcessorSuccess:
    def test_names_and_completes_record(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        extractor.extract.return_value = TextExtraction(INVOICE_TEXT, "eng")
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        outcome = processor.process(position, FileUpload("scan.png", b"payload"))

        extractor.extract.assert_called_once_with(b"payload")
        assert outcome.success
        assert outcome.synthesized_name == "invoice_acme_corp_01-02-2023_123_45"
        assert outcome.output_file_name is not None
        assert outcome.output_file_name.startswith("invoice_acme_corp_01-02-2023_123_45_")
        assert outcome.output_file_name.endswith(".png")
        assert outcome.detected_language == "eng"
        assert outcome.extracted_text == INVOICE_TEXT

        assert outcome.file_id is not None
        record = memory_store.get_file_record(outcome.file_id)
        assert record.state is FileState.SUCCESS
        assert record.synthesized_name == "invoice_acme_corp_01-02-2023_123_45"
        assert record.input_type == "PNG"
        assert record.output_type == "TXT"

        entry = memory_store.get_queue_entry(position)
        assert (entry.files_uploaded, entry.files_treated, entry.files_not_treated) == (1, 1, 0)
        assert entry.total_processing_time == record.duration_seconds

    def test_requested_output_type_wins(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        extractor.extract.return_value = TextExtraction("Holiday plans", "eng")
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        outcome = processor.process(position, FileUpload("a.png", b"x", output_type="PDF"))

        assert outcome.file_id is not None
        assert memory_store.get_file_record(outcome.file_id).output_type == "PDF"

    def test_empty_text_is_still_a_success(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        extractor.extract.return_value = TextExtraction("")
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        outcome = processor.process(position, FileUpload("blank.png", b"x"))

        assert outcome.success
        assert outcome.synthesized_name == "empty_document"
        assert outcome.detected_language == "unknown"


class TestFileProcessorFailure:
    def test_extraction_failure_marks_record_failed(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        extractor.extract.side_effect = ExtractionFailure("engine crashed")
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        outcome = processor.process(position, FileUpload("scan.png", b"x"))

        assert not outcome.success
        assert outcome.error == "engine crashed"
        assert outcome.synthesized_name is None
        assert outcome.detected_language == "unknown"
        assert outcome.file_id is not None
        record = memory_store.get_file_record(outcome.file_id)
        assert record.state is FileState.FAILED
        assert record.detected_language == "unknown"
        assert record.synthesized_name is None

        entry = memory_store.get_queue_entry(position)
        assert (entry.files_uploaded, entry.files_treated, entry.files_not_treated) == (1, 0, 1)
        assert entry.total_processing_time == 0.0

    def test_unexpected_error_closes_record_and_propagates(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        extractor.extract.side_effect = RuntimeError("boom")
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        with pytest.raises(RuntimeError, match="boom"):
            processor.process(position, FileUpload("scan.png", b"x"))

        (record,) = memory_store.list_file_records(position)
        assert record.state is FileState.FAILED
        assert record.ended_at is not None

    def test_interrupt_closes_record(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        extractor.extract.side_effect = KeyboardInterrupt
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        with pytest.raises(KeyboardInterrupt):
            processor.process(position, FileUpload("scan.png", b"x"))

        (record,) = memory_store.list_file_records(position)
        assert record.state is FileState.FAILED

    def test_invalid_upload_creates_nothing(
        self, memory_store: MemoryStore, settings: Settings
    ) -> None:
        extractor = MagicMock()
        processor = _make_processor(memory_store, settings, extractor)
        position = memory_store.allocate_queue_entry().queue_position

        with pytest.raises(ValidationFailure):
            processor.process(position, FileUpload("", b"x"))

        extractor.extract.assert_not_called()
        assert memory_store.list_file_records(position) == []
        assert memory_store.get_queue_entry(position).files_uploaded == 0
