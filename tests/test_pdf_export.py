from io import BytesIO

import pytest

from export.pdf_export import export_pages_pdf
from export.pop_card import make_pop_compositor
from models.page_layout import PageDescriptor, PageDimensions, generate_a4_layout


def _pages(count):
    return generate_a4_layout([{"title": f"Record {i}", "price": 1000 + i} for i in range(count)])


def test_export_writes_pdf_to_buffer():
    buf = BytesIO()
    written = export_pages_pdf(_pages(10), make_pop_compositor(), buf, dpi=30)
    assert written == 2
    assert buf.getvalue().startswith(b"%PDF")


def test_export_writes_pdf_to_path(tmp_path):
    target = tmp_path / "pops.pdf"
    export_pages_pdf(_pages(3), make_pop_compositor(), str(target), dpi=30)
    assert target.read_bytes().startswith(b"%PDF")


def test_progress_reports_each_page():
    progress = []
    export_pages_pdf(_pages(20), make_pop_compositor(), BytesIO(), dpi=20, on_progress=progress.append)
    assert progress == [1, 2, 3]


def test_cancel_stops_between_pages():
    progress = []
    written = export_pages_pdf(
        _pages(20), make_pop_compositor(), BytesIO(), dpi=20,
        on_progress=progress.append,
        is_cancelled=lambda: len(progress) >= 1,
    )
    assert written == 1
    assert progress == [1]


def test_no_pages_still_produces_a_document():
    buf = BytesIO()
    assert export_pages_pdf([], make_pop_compositor(), buf) == 0
    assert buf.getvalue().startswith(b"%PDF")


def test_unrenderable_page_raises():
    page = PageDescriptor(dimensions=PageDimensions(0, 0))
    with pytest.raises(RuntimeError):
        export_pages_pdf([page], make_pop_compositor(), BytesIO(), dpi=30)
