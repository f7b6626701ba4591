"""Renders custom badges (text or image) using Pillow."""

import base64
import binascii
import logging
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageOps, UnidentifiedImageError

from export.page_rasterizer import PopFrame
from models.custom_badge import DEFAULT_CUSTOM_BADGE_VALUES, CustomBadge, ImageSettings
from utils.fonts import load_sans_font
from utils.units import css_px_to_pixels, to_pixels

logger = logging.getLogger(__name__)


def compute_badge_offset(
    container_width: float,
    container_height: float,
    badge_width: float,
    badge_height: float,
    align: str = "center",
    vertical_align: str = "middle",
) -> Tuple[float, float]:
    """Top-left position of a badge anchored inside a host area."""
    if align == "left":
        left = 0.0
    elif align == "right":
        left = container_width - badge_width
    else:
        left = (container_width - badge_width) / 2

    if vertical_align == "top":
        top = 0.0
    elif vertical_align == "bottom":
        top = container_height - badge_height
    else:
        top = (container_height - badge_height) / 2
    return (left, top)


def _shape_mask(badge: CustomBadge, size: Tuple[int, int], dpi: int) -> Image.Image:
    """L-mode mask, 255 inside the badge outline."""
    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    box = (0, 0, size[0] - 1, size[1] - 1)
    if badge.shape == "circle":
        draw.ellipse(box, fill=255)
    else:
        draw.rounded_rectangle(box, radius=to_pixels(badge.border_radius or 0, dpi), fill=255)
    return mask


def decode_data_url(src: str) -> Optional[Image.Image]:
    """Decode a base64 data URL into an RGBA image, or None."""
    if not src or not src.startswith("data:") or "," not in src:
        return None
    header, payload = src.split(",", 1)
    if not header.endswith(";base64"):
        return None
    try:
        raw = base64.b64decode(payload, validate=True)
        img = Image.open(BytesIO(raw))
        img.load()
    except (binascii.Error, ValueError, OSError, UnidentifiedImageError) as exc:
        logger.warning("Could not decode badge image: %s", exc)
        return None
    return img.convert("RGBA")


def _crop_image(img: Image.Image, settings: ImageSettings) -> Image.Image:
    crop = settings.crop
    if crop is None:
        return img
    left = int(round(crop.x * img.width))
    top = int(round(crop.y * img.height))
    right = int(round((crop.x + crop.width) * img.width))
    bottom = int(round((crop.y + crop.height) * img.height))
    right = min(img.width, max(right, left + 1))
    bottom = min(img.height, max(bottom, top + 1))
    return img.crop((left, top, right, bottom))


def _badge_font_size(badge: CustomBadge, text: str, dpi: int) -> float:
    size = badge.font_size or DEFAULT_CUSTOM_BADGE_VALUES["font_size"]
    # Longer text gets a smaller font to stay inside small shapes
    if len(text) > 8:
        size *= 0.7
    elif len(text) > 5:
        size *= 0.8
    return css_px_to_pixels(size, dpi)


def _draw_text(img: Image.Image, badge: CustomBadge, dpi: int) -> None:
    text = badge.text or DEFAULT_CUSTOM_BADGE_VALUES["text"]
    font = load_sans_font(_badge_font_size(badge, text, dpi), bold=True)
    draw = ImageDraw.Draw(img)
    x0, y0, x1, y1 = draw.textbbox((0, 0), text, font=font)
    x = (img.width - (x1 - x0)) / 2 - x0
    y = (img.height - (y1 - y0)) / 2 - y0
    draw.text((x, y), text, fill=badge.text_color, font=font)


def render_badge_image(badge: CustomBadge, dpi: int = 300) -> Image.Image:
    """Render a badge to a transparent RGBA image of its physical size.

    Args:
        badge: Badge definition.
        dpi: Output resolution.

    Returns:
        PIL Image sized to the badge's width/height in mm at `dpi`.
    """
    size = (max(1, to_pixels(badge.width, dpi)), max(1, to_pixels(badge.height, dpi)))
    mask = _shape_mask(badge, size, dpi)

    content = Image.new("RGBA", size, badge.background_color)

    source = None
    if badge.type == "image" and badge.image_settings and badge.image_settings.src:
        source = decode_data_url(badge.image_settings.src)

    if source is not None:
        # Cover the badge box, like CSS object-fit: cover
        cropped = _crop_image(source, badge.image_settings)
        fitted = ImageOps.fit(cropped, size, method=Image.LANCZOS)
        content.alpha_composite(fitted)
    else:
        _draw_text(content, badge, dpi)

    badge_img = Image.new("RGBA", size, (0, 0, 0, 0))
    badge_img.paste(content, (0, 0), mask)

    if badge.border_enabled:
        stroke = max(1, to_pixels(badge.border_width or 0, dpi))
        draw = ImageDraw.Draw(badge_img)
        box = (0, 0, size[0] - 1, size[1] - 1)
        if badge.shape == "circle":
            draw.ellipse(box, outline=badge.border_color, width=stroke)
        else:
            draw.rounded_rectangle(box, radius=to_pixels(badge.border_radius or 0, dpi),
                                   outline=badge.border_color, width=stroke)
    return badge_img


def draw_badge(frame: PopFrame, badge: CustomBadge,
               area: Optional[Tuple[int, int, int, int]] = None) -> Tuple[int, int]:
    """Paste a badge into a pop frame, anchored by its own align hints.

    Args:
        frame: Target pop frame.
        badge: Badge definition.
        area: Host area (x, y, width, height) in frame pixels; the whole
            frame when omitted.

    Returns:
        The local (x, y) where the badge was placed.
    """
    area = area or (0, 0, frame.width, frame.height)
    img = render_badge_image(badge, frame.dpi)
    left, top = compute_badge_offset(area[2], area[3], img.width, img.height,
                                     badge.badge_align, badge.badge_vertical_align)
    position = (int(round(area[0] + left)), int(round(area[1] + top)))
    frame.paste(img, position)
    return position
