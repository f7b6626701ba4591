"""Default pop card compositor: outline, text lines and badges."""

import logging
from typing import Any, Callable, List, Optional

from export.badge_renderer import draw_badge
from export.page_rasterizer import Compositor, PopFrame
from models.custom_badge import CustomBadge
from utils.fonts import load_sans_font

logger = logging.getLogger(__name__)

OUTLINE_COLOR = "#d4d4d4"
TEXT_COLOR = "#111111"
MUTED_COLOR = "#555555"
PADDING_MM = 4.0

# (key, font size in mm, bold, color), drawn top to bottom
TEXT_LINES = (
    ("title", 6.0, True, TEXT_COLOR),
    ("artist", 4.5, False, TEXT_COLOR),
    ("label", 3.5, False, MUTED_COLOR),
    ("condition", 3.5, False, MUTED_COLOR),
    ("comment", 3.5, False, TEXT_COLOR),
)
PRICE_SIZE_MM = 8.0

BadgeLookup = Callable[[str], Optional[CustomBadge]]


def pop_badges(pop: dict, badge_lookup: Optional[BadgeLookup]) -> List[CustomBadge]:
    """Badges referenced by id (resolved via lookup) followed by embedded badges."""
    badges = []
    for badge_id in pop.get("badgeIds") or []:
        badge = badge_lookup(badge_id) if badge_lookup else None
        if badge is None:
            logger.debug("Skipping unknown badge id %s", badge_id)
            continue
        badges.append(badge)
    for data in pop.get("badges") or []:
        if isinstance(data, CustomBadge):
            badges.append(data)
        elif isinstance(data, dict):
            # embedded badges need not carry catalog identity
            badges.append(CustomBadge.from_dict({"id": "", "name": "", "type": "text", **data}))
    return badges


def _draw_lines(frame: PopFrame, pop: dict) -> None:
    pad = frame.mm(PADDING_MM)
    y = pad
    for key, size_mm, bold, color in TEXT_LINES:
        text = pop.get(key)
        if not text:
            continue
        font = load_sans_font(frame.mm(size_mm), bold=bold)
        frame.text((pad, y), str(text), fill=color, font=font)
        _, _, _, bottom = frame.textbbox((pad, y), str(text), font=font)
        y = bottom + frame.mm(1.5)


def _draw_price(frame: PopFrame, price: Any, width: int, height: int) -> None:
    pad = frame.mm(PADDING_MM)
    text = price if isinstance(price, str) else f"¥{price:,}"
    font = load_sans_font(frame.mm(PRICE_SIZE_MM), bold=True)
    x0, y0, x1, y1 = frame.textbbox((0, 0), text, font=font)
    frame.text((width - pad - (x1 - x0) - x0, height - pad - (y1 - y0) - y0),
               text, fill=TEXT_COLOR, font=font)


def make_pop_compositor(badge_lookup: Optional[BadgeLookup] = None) -> Compositor:
    """Build a compositor for dict pop descriptors.

    Recognised keys: title, artist, label, condition, comment, price,
    badgeIds (catalog ids) and badges (embedded badge dicts).
    """

    def compose(frame: PopFrame, pop: Any, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            return
        frame.rectangle((0, 0, width - 1, height - 1), outline=OUTLINE_COLOR, width=1)
        if not isinstance(pop, dict):
            return
        _draw_lines(frame, pop)
        if pop.get("price") is not None:
            _draw_price(frame, pop["price"], width, height)
        for badge in pop_badges(pop, badge_lookup):
            draw_badge(frame, badge)

    return compose
