from ocrify.naming.classifier import classify
from ocrify.naming.keywords import extract_keywords
from ocrify.naming.models import ClassificationContext, DocumentType, NamingResult
from ocrify.naming.sanitizer import sanitize_file_name
from ocrify.naming.synthesizer import build_output_file_name, classify_and_name

__all__ = [
    "ClassificationContext",
    "DocumentType",
    "NamingResult",
    "build_output_file_name",
    "classify",
    "classify_and_name",
    "extract_keywords",
    "sanitize_file_name",
]
