from ocrify.config.settings import Settings
from ocrify.extraction.base import BaseTextExtractor
from ocrify.extraction.pdfplumber_adapter import PdfPlumberAdapter
from ocrify.extraction.pymupdf_adapter import PyMuPdfAdapter


class TextExtractorFactory:
    """Creates the correct text extractor based on settings."""

    ADAPTERS: dict[str, type[BaseTextExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTextExtractor:
        engine = settings.text_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown text engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls(language=settings.ocr_language)
