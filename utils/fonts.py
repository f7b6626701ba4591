"""System font lookup for badge and pop text (Windows + Linux + macOS)."""

import logging
import os
import sys
from typing import Dict, List, Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)

# Sans families tried in order when drawing badge/pop text
SANS_FAMILIES = ("Arial", "Helvetica", "DejaVu Sans", "Liberation Sans", "Noto Sans")

# Cache: display name ("Arial Bold") -> file path
_font_cache: Optional[Dict[str, str]] = None


def _font_dirs() -> List[str]:
    """Candidate directories holding .ttf/.otf files."""
    dirs = []
    # Project-bundled fonts (fonts/ directory at the repository root)
    project_fonts = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "fonts")
    dirs.append(project_fonts)

    if sys.platform == "win32":
        windir = os.environ.get("WINDIR", r"C:\Windows")
        dirs.append(os.path.join(windir, "Fonts"))
        localappdata = os.environ.get("LOCALAPPDATA", "")
        if localappdata:
            dirs.append(os.path.join(localappdata, "Microsoft", "Windows", "Fonts"))
    else:
        roots = ["/usr/share/fonts", "/usr/local/share/fonts",
                 os.path.expanduser("~/.local/share/fonts"),
                 os.path.expanduser("~/.fonts")]
        if sys.platform == "darwin":
            roots += ["/Library/Fonts", "/System/Library/Fonts",
                      os.path.expanduser("~/Library/Fonts")]
        for root_dir in roots:
            if not os.path.isdir(root_dir):
                continue
            # Linux fonts are usually nested per foundry
            for root, _, files in os.walk(root_dir):
                if any(f.lower().endswith((".ttf", ".otf")) for f in files):
                    dirs.append(root)
    return [d for d in dirs if os.path.isdir(d)]


def discover_fonts() -> Dict[str, str]:
    """Scan font directories and map "Family Style" display names to paths."""
    global _font_cache
    if _font_cache is not None:
        return _font_cache

    fonts: Dict[str, str] = {}
    for font_dir in _font_dirs():
        for entry in os.scandir(font_dir):
            if not entry.is_file() or not entry.name.lower().endswith((".ttf", ".otf")):
                continue
            try:
                family, style = ImageFont.truetype(entry.path, size=12).getname()
            except OSError:
                continue
            if not family:
                continue
            if style and style.lower() != "regular":
                display = f"{family} {style}"
            else:
                display = family
            fonts.setdefault(display, entry.path)

    logger.debug("Discovered %d fonts", len(fonts))
    _font_cache = dict(sorted(fonts.items()))
    return _font_cache


def find_font_path(family: str, bold: bool = False) -> Optional[str]:
    """Find the file for a family, preferring the bold face when asked."""
    fonts = discover_fonts()
    candidates = [f"{family} Bold", family] if bold else [family]
    lowered = {name.lower(): path for name, path in fonts.items()}
    for candidate in candidates:
        path = fonts.get(candidate) or lowered.get(candidate.lower())
        if path:
            return path
    return None


def load_sans_font(size: float, bold: bool = True) -> ImageFont.FreeTypeFont:
    """Load the first available sans font at a pixel size.

    Falls back to Pillow's bundled default font when no system font matches.
    """
    size = max(1, int(round(size)))
    for family in SANS_FAMILIES:
        path = find_font_path(family, bold)
        if not path:
            continue
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.debug("Could not open font %s", path)
    return ImageFont.load_default(size=size)
