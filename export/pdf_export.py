"""PDF generation: rasterize each page and place it full-bleed with ReportLab."""

import logging
from io import BytesIO
from typing import Callable, Optional, Sequence

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as rl_canvas

from export.page_rasterizer import DEFAULT_DPI, Compositor, render_page
from models.page_layout import PageDescriptor

logger = logging.getLogger(__name__)


def export_pages_pdf(
    pages: Sequence[PageDescriptor],
    compositor: Compositor,
    output_path,
    dpi: int = DEFAULT_DPI,
    on_progress: Optional[Callable[[int], None]] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> int:
    """Export pages into a multi-page PDF at their physical size.

    Each page is rendered at `dpi` with Pillow, then drawn over the whole
    PDF page with ReportLab. `output_path` may be a path or a binary
    file object.

    Returns:
        Number of pages written.
    """
    c = None
    written = 0
    for page in pages:
        if is_cancelled and is_cancelled():
            logger.info("PDF export cancelled after %d pages", written)
            break

        rendered = render_page(page, compositor, dpi)
        if rendered is None:
            raise RuntimeError(f"Could not rasterize page {page.page_number}")

        page_w = page.dimensions.width * mm
        page_h = page.dimensions.height * mm
        if c is None:
            c = rl_canvas.Canvas(output_path, pagesize=(page_w, page_h))
        else:
            c.setPageSize((page_w, page_h))

        img_buffer = BytesIO()
        rendered.image.save(img_buffer, format="PNG", dpi=(dpi, dpi))
        img_buffer.seek(0)

        # ReportLab origin is bottom-left; the image covers the full page
        c.drawImage(ImageReader(img_buffer), 0, 0, page_w, page_h)
        c.showPage()
        written += 1

        if on_progress:
            on_progress(written)

    if c is None:
        # Still produce a valid (blank A4) document
        c = rl_canvas.Canvas(output_path)
        c.showPage()
    c.save()
    logger.info("Wrote %d PDF pages at %d dpi", written, dpi)
    return written
