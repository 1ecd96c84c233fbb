from ocrify.tracking.exceptions import OcrifyError


class ExtractionFailure(OcrifyError):
    """Raised when the text-extraction engine fails for a file."""
