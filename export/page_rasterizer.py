"""Rasterize a page descriptor into a Pillow image at a chosen DPI."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from models.page_layout import PageDescriptor, is_mm, placement_pixels
from utils.units import aspect_ratio_label, display_size, to_pixels

logger = logging.getLogger(__name__)

DEFAULT_DPI = 300
DEFAULT_DISPLAY_SCALE = 0.3
PAGE_BACKGROUND = "#ffffff"


class PopFrame:
    """Drawing surface for one pop, with (0, 0) at the pop's top-left pixel.

    All drawing goes straight onto the page image; coordinates given to the
    methods here are local to the pop. Nothing is clipped.
    """

    def __init__(self, image: Image.Image, origin: Tuple[int, int],
                 size: Tuple[int, int], dpi: int):
        self.image = image
        self.origin = origin
        self.width, self.height = size
        self.dpi = dpi
        self._draw = ImageDraw.Draw(image)

    def mm(self, value_mm: float) -> int:
        """Millimeters to pixels at this frame's DPI."""
        return to_pixels(value_mm, self.dpi)

    def to_page(self, x: float, y: float) -> Tuple[float, float]:
        return (x + self.origin[0], y + self.origin[1])

    def _box(self, box: Sequence[float]) -> Tuple[float, float, float, float]:
        x0, y0, x1, y1 = box
        ox, oy = self.origin
        return (x0 + ox, y0 + oy, x1 + ox, y1 + oy)

    def rectangle(self, box: Sequence[float], **kwargs) -> None:
        self._draw.rectangle(self._box(box), **kwargs)

    def rounded_rectangle(self, box: Sequence[float], radius: float = 0, **kwargs) -> None:
        self._draw.rounded_rectangle(self._box(box), radius=radius, **kwargs)

    def ellipse(self, box: Sequence[float], **kwargs) -> None:
        self._draw.ellipse(self._box(box), **kwargs)

    def line(self, points: Sequence[Tuple[float, float]], **kwargs) -> None:
        self._draw.line([self.to_page(x, y) for x, y in points], **kwargs)

    def text(self, xy: Tuple[float, float], text: str, **kwargs) -> None:
        self._draw.text(self.to_page(*xy), text, **kwargs)

    def textbbox(self, xy: Tuple[float, float], text: str, **kwargs) -> Tuple[float, float, float, float]:
        """Text bounding box in local coordinates."""
        x0, y0, x1, y1 = self._draw.textbbox(self.to_page(*xy), text, **kwargs)
        ox, oy = self.origin
        return (x0 - ox, y0 - oy, x1 - ox, y1 - oy)

    def paste(self, image: Image.Image, xy: Tuple[int, int]) -> None:
        """Paste an image at a local position, honouring its alpha channel."""
        x, y = self.to_page(*xy)
        mask = image if image.mode == "RGBA" else None
        self.image.paste(image, (int(round(x)), int(round(y))), mask)


# compositor(frame, pop content descriptor, width_px, height_px)
Compositor = Callable[[PopFrame, Any, int, int], None]


@dataclass
class RenderedPage:
    image: Image.Image
    dpi: int
    scale: float
    width_mm: float
    height_mm: float

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def display_width(self) -> int:
        return display_size(self.width, self.height, self.scale)[0]

    @property
    def display_height(self) -> int:
        return display_size(self.width, self.height, self.scale)[1]

    @property
    def aspect_ratio(self) -> str:
        return aspect_ratio_label(self.width_mm, self.height_mm)

    def display_image(self) -> Image.Image:
        """A resized copy for on-screen preview; print uses `image`."""
        return self.image.resize((self.display_width, self.display_height), Image.LANCZOS)


def _acquire_surface(width: int, height: int) -> Optional[Image.Image]:
    if width <= 0 or height <= 0:
        logger.warning("Cannot allocate a %dx%d page surface", width, height)
        return None
    if Image.MAX_IMAGE_PIXELS and width * height > Image.MAX_IMAGE_PIXELS:
        logger.warning("Page surface %dx%d exceeds %d pixels", width, height, Image.MAX_IMAGE_PIXELS)
        return None
    try:
        return Image.new("RGB", (width, height), PAGE_BACKGROUND)
    except (ValueError, MemoryError) as exc:
        logger.warning("Cannot allocate a %dx%d page surface: %s", width, height, exc)
        return None


def render_page(
    page: PageDescriptor,
    compositor: Compositor,
    dpi: int = DEFAULT_DPI,
    scale: float = DEFAULT_DISPLAY_SCALE,
) -> Optional[RenderedPage]:
    """Draw every pop of a page, in order, onto a fresh white surface.

    Returns None, without calling the compositor, when no surface can be
    allocated for the requested size and DPI. Pops whose geometry is not
    numeric are skipped.
    """
    if isinstance(dpi, bool) or not isinstance(dpi, int) or dpi <= 0:
        logger.warning("Invalid DPI %r; page not rendered", dpi)
        return None

    if not (is_mm(page.dimensions.width) and is_mm(page.dimensions.height)):
        logger.warning("Invalid page size %r x %r; page not rendered",
                       page.dimensions.width, page.dimensions.height)
        return None
    width = to_pixels(page.dimensions.width, dpi)
    height = to_pixels(page.dimensions.height, dpi)
    surface = _acquire_surface(width, height)
    if surface is None:
        return None

    for placement in page.pops:
        if not placement.has_valid_geometry():
            logger.warning("Skipping pop with invalid geometry on page %s", page.page_number)
            continue
        x, y, pop_width, pop_height = placement_pixels(placement, dpi)
        frame = PopFrame(surface, (x, y), (pop_width, pop_height), dpi)
        compositor(frame, placement.pop, pop_width, pop_height)

    logger.debug("Rendered page %s: %dx%d px, %d pops at %d dpi",
                 page.page_number, width, height, len(page.pops), dpi)
    return RenderedPage(surface, dpi, scale, page.dimensions.width, page.dimensions.height)


class PageRasterizer:
    """Keeps the latest render of a page and redraws it after any change.

    Every redraw repaints the whole page from a blank background.
    """

    def __init__(
        self,
        page: PageDescriptor,
        compositor: Compositor,
        dpi: int = DEFAULT_DPI,
        scale: float = DEFAULT_DISPLAY_SCALE,
        on_ready: Optional[Callable[[RenderedPage], None]] = None,
    ):
        self._page = page
        self._dpi = dpi
        self._scale = scale
        self.compositor = compositor
        self.on_ready = on_ready
        self._rendered: Optional[RenderedPage] = None
        self._dirty = True
        self.render_count = 0

    @property
    def page(self) -> PageDescriptor:
        return self._page

    @page.setter
    def page(self, page: PageDescriptor) -> None:
        self._page = page
        self._dirty = True

    @property
    def dpi(self) -> int:
        return self._dpi

    @dpi.setter
    def dpi(self, dpi: int) -> None:
        self._dpi = dpi
        self._dirty = True

    @property
    def scale(self) -> float:
        return self._scale

    @scale.setter
    def scale(self, scale: float) -> None:
        self._scale = scale
        self._dirty = True

    def invalidate(self) -> None:
        self._dirty = True

    @property
    def surface(self) -> Optional[RenderedPage]:
        """Current render, redrawn first if anything changed."""
        if self._dirty:
            self._rendered = render_page(self._page, self.compositor, self._dpi, self._scale)
            self._dirty = False
            self.render_count += 1
            if self._rendered is not None and self.on_ready:
                self.on_ready(self._rendered)
        return self._rendered
