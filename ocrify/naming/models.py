from dataclasses import dataclass, field
from enum import Enum


class DocumentType(str, Enum):
    """Coarse content classification label."""

    INVOICE = "invoice"
    RECEIPT = "receipt"
    CONTRACT = "contract"
    LETTER = "letter"
    REPORT = "report"
    CERTIFICATE = "certificate"
    FORM = "form"
    MEMO = "memo"
    ID = "id"
    TICKET = "ticket"
    DOCUMENT = "document"


@dataclass(frozen=True)
class ClassificationContext:
    """Structured fields pulled from the text, conditioned on document type."""

    document_type: DocumentType = DocumentType.DOCUMENT
    company: str | None = None
    subject: str | None = None
    date: str | None = None
    amount: str | None = None


@dataclass(frozen=True)
class NamingResult:
    """Output of classify_and_name: the synthesized name and what fed it."""

    name: str
    original_extension: str
    context: ClassificationContext = field(default_factory=ClassificationContext)
    keywords: list[str] = field(default_factory=list)

    @property
    def document_type(self) -> DocumentType:
        return self.context.document_type
