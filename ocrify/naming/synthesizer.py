"""Builds human-meaningful file names from extracted text.

Name parts, in order: document type (unless generic), company, subject,
date, amount. Only the first four present parts are used. Fallbacks when
no part is present: top keywords, then the first long words of the text,
then the literal ``document``.
"""

from datetime import datetime, timezone

from ocrify.naming.classifier import classify
from ocrify.naming.context import extract_context
from ocrify.naming.keywords import extract_keywords, normalize_text
from ocrify.naming.models import ClassificationContext, DocumentType, NamingResult
from ocrify.naming.sanitizer import sanitize_file_name

EMPTY_DOCUMENT_NAME = "empty_document"
FALLBACK_NAME = "document"

_MAX_NAME_PARTS = 4
_MAX_FALLBACK_WORDS = 3
_TIMESTAMP_LENGTH = 19


def build_name_parts(context: ClassificationContext) -> list[str]:
    """Return the present name parts of *context* in naming order."""
    parts: list[str] = []
    if context.document_type is not DocumentType.DOCUMENT:
        parts.append(context.document_type.value)
    for value in (context.company, context.subject, context.date, context.amount):
        if value:
            parts.append(value)
    return parts[:_MAX_NAME_PARTS]


def synthesize_name(
    text: str,
    context: ClassificationContext,
    keywords: list[str],
) -> str:
    """Compose a sanitized name from context parts with layered fallbacks."""
    parts = build_name_parts(context)
    if parts:
        return sanitize_file_name("_".join(parts))
    if keywords:
        return sanitize_file_name("_".join(keywords[:_MAX_FALLBACK_WORDS]))
    first_words = [word for word in normalize_text(text).split(" ") if len(word) > 3]
    if first_words:
        return sanitize_file_name("_".join(first_words[:_MAX_FALLBACK_WORDS]).lower())
    return sanitize_file_name(FALLBACK_NAME)


def classify_and_name(text: str, original_extension: str) -> NamingResult:
    """Classify *text* and derive its file name (without timestamp/extension).

    Never raises: empty or whitespace-only text yields ``empty_document``.
    The returned name is lower-case and matches ``[a-z0-9_-]{1,50}``.
    """
    if not text or not text.strip():
        return NamingResult(name=EMPTY_DOCUMENT_NAME, original_extension=original_extension)

    document_type = classify(text.lower())
    context = extract_context(text, document_type)
    keywords = extract_keywords(text)
    name = synthesize_name(text, context, keywords).lower()
    return NamingResult(
        name=name,
        original_extension=original_extension,
        context=context,
        keywords=keywords,
    )


def format_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with ':' and '.' replaced, cut to seconds."""
    moment = now if now is not None else datetime.now(timezone.utc)
    iso = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace(":", "-").replace(".", "-")[:_TIMESTAMP_LENGTH]


def build_output_file_name(
    synthesized_name: str,
    original_extension: str,
    now: datetime | None = None,
) -> str:
    """Return ``<name>_<timestamp><extension>`` for the output writer."""
    return f"{synthesized_name}_{format_timestamp(now)}{original_extension}"
