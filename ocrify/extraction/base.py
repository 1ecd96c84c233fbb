from abc import ABC, abstractmethod

from ocrify.extraction.models import TextExtraction
from ocrify.tracking.models import UNKNOWN_LANGUAGE


class BaseTextExtractor(ABC):
    """Contract for all text extraction adapters."""

    def __init__(self, language: str = "eng") -> None:
        self._language = language

    @abstractmethod
    def extract(self, payload: bytes) -> TextExtraction:
        """Extract plain text from an uploaded file.

        Args:
            payload: Raw file content.

        Returns:
            TextExtraction with the text and the detected language
            ("unknown" when no text was found).

        Raises:
            ExtractionFailure: if extraction fails for any reason.
        """

    def _result(self, text: str) -> TextExtraction:
        language = self._language if text else UNKNOWN_LANGUAGE
        return TextExtraction(text=text, language=language)
