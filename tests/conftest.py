import io
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from ocrify.config.settings import Settings
from ocrify.storage.memory_store import MemoryStore


def _pdf(*pages: list[str]) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for lines in pages:
        y = 720
        for line in lines:
            c.drawString(72, y, line)
            y -= 18
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Single-page PDF with known text content."""
    return _pdf(["Hello PDF World"])


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Two-page PDF with known text on each page."""
    return _pdf(["Page one content"], ["Page two content"])


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Valid PDF with a blank page."""
    return _pdf([])


@pytest.fixture()
def invoice_pdf_bytes() -> bytes:
    """Invoice-like PDF whose text yields a fully populated name."""
    return _pdf(["INVOICE", "From: Acme Corp", "Total: $123.45", "01/02/2023"])


@pytest.fixture()
def fake_clock() -> Callable[[], datetime]:
    """Clock advancing one second per call, starting 2024-01-01 UTC."""
    state = {"now": datetime(2024, 1, 1, tzinfo=timezone.utc)}

    def tick() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return tick


@pytest.fixture()
def memory_store(fake_clock: Callable[[], datetime]) -> MemoryStore:
    return MemoryStore(clock=fake_clock)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        storage_backend="memory",
        bulk_worker_count=4,
        max_bulk_files=10,
        default_output_type="TXT",
        _env_file=None,  # type: ignore[call-arg]
    )
