"""Page descriptors: physical page size plus positioned pops, all in mm."""

import math
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

from utils.units import to_pixels

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0

# 2 x 4 grid of landscape A7-sized pops, edge to edge
POPS_PER_PAGE = 8
LAYOUT_COLUMNS = 2
LAYOUT_ROWS = 4
LAYOUT_MARGIN_MM = 0.0
LAYOUT_SPACING_MM = 0.0

STANDARD_POP_WIDTH_MM = 100.0
STANDARD_POP_HEIGHT_MM = 74.0


def is_mm(value: Any) -> bool:
    """True for a finite int/float length (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def coerce_mm(value: Any, default: float) -> float:
    """Length from decoded JSON; null, non-numeric or non-finite becomes `default`."""
    return value if is_mm(value) else default


@dataclass
class PageDimensions:
    width: float = A4_WIDTH_MM   # mm
    height: float = A4_HEIGHT_MM  # mm

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "PageDimensions":
        if not isinstance(d, dict):
            return cls()
        return cls(width=coerce_mm(d.get("width"), A4_WIDTH_MM),
                   height=coerce_mm(d.get("height"), A4_HEIGHT_MM))


@dataclass
class PopPlacement:
    """One pop on a page. `pop` is opaque to the page; only compositors read it."""
    x: float
    y: float
    width: float
    height: float
    pop: Any = None

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width,
                "height": self.height, "pop": self.pop}

    @classmethod
    def from_dict(cls, d: dict) -> "PopPlacement":
        return cls(
            x=coerce_mm(d.get("x"), 0.0),
            y=coerce_mm(d.get("y"), 0.0),
            width=coerce_mm(d.get("width"), 0.0),
            height=coerce_mm(d.get("height"), 0.0),
            pop=d.get("pop"),
        )

    def has_valid_geometry(self) -> bool:
        return all(is_mm(v) for v in (self.x, self.y, self.width, self.height))


@dataclass
class PageDescriptor:
    """A page and its pops; pops paint in list order, later over earlier."""
    dimensions: PageDimensions = field(default_factory=PageDimensions)
    pops: List[PopPlacement] = field(default_factory=list)
    page_number: int = 1

    def to_dict(self) -> dict:
        return {
            "pageNumber": self.page_number,
            "dimensions": self.dimensions.to_dict(),
            "pops": [p.to_dict() for p in self.pops],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PageDescriptor":
        if not isinstance(d, dict):
            return cls()
        pops = d.get("pops")
        page_number = d.get("pageNumber")
        if isinstance(page_number, bool) or not isinstance(page_number, int):
            page_number = 1
        return cls(
            dimensions=PageDimensions.from_dict(d.get("dimensions", {})),
            pops=[PopPlacement.from_dict(p) for p in pops if isinstance(p, dict)]
            if isinstance(pops, list) else [],
            page_number=page_number,
        )


def placement_pixels(placement: PopPlacement, dpi: float) -> Tuple[int, int, int, int]:
    """Pixel (x, y, width, height) of a placement, each value rounded on its own."""
    return (
        to_pixels(placement.x, dpi),
        to_pixels(placement.y, dpi),
        to_pixels(placement.width, dpi),
        to_pixels(placement.height, dpi),
    )


def required_pages(pop_count: int) -> int:
    return math.ceil(pop_count / POPS_PER_PAGE)


def _layout_page(pops: Sequence[Any], page_number: int,
                 pop_width: float, pop_height: float) -> PageDescriptor:
    placements = []
    for index, pop in enumerate(pops):
        col = index % LAYOUT_COLUMNS
        row = index // LAYOUT_COLUMNS
        placements.append(PopPlacement(
            x=LAYOUT_MARGIN_MM + col * (pop_width + LAYOUT_SPACING_MM),
            y=LAYOUT_MARGIN_MM + row * (pop_height + LAYOUT_SPACING_MM),
            width=pop_width,
            height=pop_height,
            pop=pop,
        ))
    return PageDescriptor(
        dimensions=PageDimensions(A4_WIDTH_MM, A4_HEIGHT_MM),
        pops=placements,
        page_number=page_number,
    )


def generate_a4_layout(
    pops: Sequence[Any],
    pop_width: float = STANDARD_POP_WIDTH_MM,
    pop_height: float = STANDARD_POP_HEIGHT_MM,
) -> List[PageDescriptor]:
    """Split pops into A4 pages of POPS_PER_PAGE, filled row by row."""
    pages = []
    for start in range(0, len(pops), POPS_PER_PAGE):
        chunk = pops[start:start + POPS_PER_PAGE]
        pages.append(_layout_page(chunk, len(pages) + 1, pop_width, pop_height))
    return pages
