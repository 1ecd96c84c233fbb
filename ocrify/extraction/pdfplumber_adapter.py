import io

import pdfplumber

from ocrify.extraction.base import BaseTextExtractor
from ocrify.extraction.exceptions import ExtractionFailure
from ocrify.extraction.models import TextExtraction


class PdfPlumberAdapter(BaseTextExtractor):
    """Reads the text layer of PDF uploads using pdfplumber."""

    def extract(self, payload: bytes) -> TextExtraction:
        try:
            with pdfplumber.open(io.BytesIO(payload)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return self._result("\n".join(pages).strip())
        except ExtractionFailure:
            raise
        except Exception as exc:
            raise ExtractionFailure(f"pdfplumber extraction failed: {exc}") from exc
