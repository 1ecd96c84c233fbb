from dataclasses import dataclass, field
from pathlib import PurePath


@dataclass(frozen=True)
class FileUpload:
    """One file handed over by the upload layer."""

    original_name: str
    payload: bytes
    output_type: str | None = None

    @property
    def extension(self) -> str:
        """Original extension including the dot, e.g. ``.png``."""
        return PurePath(self.original_name).suffix

    @property
    def input_type(self) -> str:
        return self.extension.lstrip(".").upper()


@dataclass(frozen=True)
class FileOutcome:
    """Per-file result of a processing run."""

    original_name: str
    success: bool
    file_id: int | None = None
    synthesized_name: str | None = None
    output_file_name: str | None = None
    detected_language: str | None = None
    extracted_text: str = ""
    error: str | None = None


@dataclass
class BatchResult:
    """Outcome of a bulk submission: one entry per file plus totals."""

    queue_position: str
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def fail_count(self) -> int:
        return self.total_files - self.success_count
