import pymupdf

from ocrify.extraction.base import BaseTextExtractor
from ocrify.extraction.exceptions import ExtractionFailure
from ocrify.extraction.models import TextExtraction


class PyMuPdfAdapter(BaseTextExtractor):
    """Reads the text layer of PDF uploads using PyMuPDF."""

    def extract(self, payload: bytes) -> TextExtraction:
        try:
            with pymupdf.open(stream=payload, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
            return self._result("\n".join(pages).strip())
        except ExtractionFailure:
            raise
        except Exception as exc:
            raise ExtractionFailure(f"pymupdf extraction failed: {exc}") from exc
