from dataclasses import dataclass

from ocrify.tracking.models import UNKNOWN_LANGUAGE


@dataclass(frozen=True)
class TextExtraction:
    """Text returned by an extraction engine for one file."""

    text: str
    language: str = UNKNOWN_LANGUAGE
