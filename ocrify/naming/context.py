import re

from ocrify.naming.models import ClassificationContext, DocumentType
from ocrify.naming.sanitizer import sanitize_file_name

_COMPANY_MAX_LENGTH = 20
_SUBJECT_MAX_LENGTH = 20
_TITLE_MAX_LENGTH = 30

# Captured phrases stop at line breaks.
_COMPANY_RE = re.compile(r"\b(?i:from|company|vendor)[:\s]+([A-Z][A-Za-z &,.]{2,30})")
_SUBJECT_RE = re.compile(r"\b(?:subject|re)[:\s]+([A-Za-z \t]{3,40})", re.IGNORECASE)
_DATE_RE = re.compile(
    r"\b("
    r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"
    r"|\d{4}[/\-]\d{1,2}[/\-]\d{1,2}"
    r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},?\s+\d{4}"
    r")\b",
    re.IGNORECASE,
)
_DATE_SEPARATORS_RE = re.compile(r"[/\s,]")
_AMOUNT_RE = re.compile(r"\b(?:total|amount|sum)[\s:$]*(\d[\d,]*[.,]\d{2})", re.IGNORECASE)

_AMOUNT_TYPES = frozenset({DocumentType.INVOICE, DocumentType.RECEIPT})


def extract_context(text: str, document_type: DocumentType) -> ClassificationContext:
    """Pull company, subject, date and amount out of original-case *text*.

    Every field is best-effort: a missing match leaves it ``None``. When
    neither a company nor a subject is found, a short first line is used
    as the subject.
    """
    company = _extract_company(text)
    subject = _extract_subject(text)
    if company is None and subject is None:
        subject = _extract_title(text)
    amount = _extract_amount(text) if document_type in _AMOUNT_TYPES else None
    return ClassificationContext(
        document_type=document_type,
        company=company,
        subject=subject,
        date=_extract_date(text),
        amount=amount,
    )


def _extract_company(text: str) -> str | None:
    match = _COMPANY_RE.search(text)
    if match is None:
        return None
    return sanitize_file_name(match.group(1).strip())[:_COMPANY_MAX_LENGTH]


def _extract_subject(text: str) -> str | None:
    match = _SUBJECT_RE.search(text)
    if match is None:
        return None
    return sanitize_file_name(match.group(1).strip())[:_SUBJECT_MAX_LENGTH]


def _extract_date(text: str) -> str | None:
    match = _DATE_RE.search(text)
    if match is None:
        return None
    return _DATE_SEPARATORS_RE.sub("-", match.group(1))


def _extract_amount(text: str) -> str | None:
    match = _AMOUNT_RE.search(text)
    if match is None:
        return None
    return match.group(1).replace(",", "")


def _extract_title(text: str) -> str | None:
    lines = [line.strip() for line in text.split("\n") if len(line.strip()) > 3]
    if not lines:
        return None
    first_line = lines[0]
    if not 3 < len(first_line) < 50:
        return None
    return sanitize_file_name(first_line)[:_TITLE_MAX_LENGTH]
