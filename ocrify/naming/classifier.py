"""Rule-based document type classifier.

Rules are evaluated in order and the first match wins. A rule can require a
second pattern to be present as well (receipts need a monetary amount,
forms need personal-data fields).
"""

import re
from dataclasses import dataclass

from ocrify.naming.keywords import normalize_text
from ocrify.naming.models import DocumentType


@dataclass(frozen=True)
class _Rule:
    document_type: DocumentType
    vocabulary: re.Pattern[str]
    required: re.Pattern[str] | None = None

    def matches(self, text_lower: str) -> bool:
        if not self.vocabulary.search(text_lower):
            return False
        return self.required is None or bool(self.required.search(text_lower))


_MONEY_RE = re.compile(r"\$\d+|\d+\.\d{2}")
_PERSONAL_FIELD_RE = re.compile(r"\b(?:name|address|date|signature)\b")

_RULES: list[_Rule] = [
    _Rule(
        DocumentType.INVOICE,
        re.compile(
            r"\b(?:invoice|bill|billing|payment due|amount due|total amount|subtotal)\b"
        ),
    ),
    _Rule(
        DocumentType.RECEIPT,
        re.compile(r"\b(?:receipt|paid|transaction|purchase|sale)\b"),
        required=_MONEY_RE,
    ),
    _Rule(
        DocumentType.CONTRACT,
        re.compile(
            r"\b(?:contract|agreement|terms and conditions|hereby agree|party|parties)\b"
        ),
    ),
    _Rule(
        DocumentType.LETTER,
        re.compile(r"\bdear\s|\b(?:sincerely|regards|yours truly)\b|\bsubject:"),
    ),
    _Rule(
        DocumentType.REPORT,
        re.compile(
            r"\b(?:report|summary|analysis|findings|conclusion|executive summary)\b"
        ),
    ),
    _Rule(
        DocumentType.CERTIFICATE,
        re.compile(r"\b(?:certificate|certify|awarded|completion|achievement)\b"),
    ),
    _Rule(
        DocumentType.FORM,
        re.compile(r"\b(?:form|application|questionnaire|survey)\b"),
        required=_PERSONAL_FIELD_RE,
    ),
    _Rule(
        DocumentType.MEMO,
        re.compile(r"\b(?:memo|memorandum|note)\b|\b(?:to|from|re):"),
    ),
    _Rule(
        DocumentType.ID,
        re.compile(r"\b(?:passport|identification|id card|driver license|permit)\b"),
    ),
    _Rule(
        DocumentType.TICKET,
        re.compile(r"\b(?:ticket|boarding pass|admission|entry)\b"),
    ),
]


def classify(text_lower: str) -> DocumentType:
    """Return the document type of already lower-cased text.

    Line breaks and whitespace runs are collapsed first, so multi-word
    vocabulary wrapped across lines still matches.
    """
    flattened = normalize_text(text_lower)
    for rule in _RULES:
        if rule.matches(flattened):
            return rule.document_type
    return DocumentType.DOCUMENT
