"""Custom badge data model: limits, defaulting, validation and JSON mapping."""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from PIL import ImageColor

from models.errors import ValidationError

BADGE_TYPES = ("text", "image")
BADGE_SHAPES = ("circle", "rectangle")
BADGE_ALIGNS = ("left", "center", "right")
BADGE_VERTICAL_ALIGNS = ("top", "middle", "bottom")

CUSTOM_BADGE_STORAGE_KEY = "discogs-pop-maker-custom-badges"
CUSTOM_BADGE_STORAGE_VERSION = "1.0.0"

CUSTOM_BADGE_LIMITS = {
    "max_count": 5,
    "max_name_length": 20,
    "max_text_length": 10,
    "min_size": 10,            # mm
    "max_size": 50,            # mm
    "min_border_radius": 0,    # mm
    "max_border_radius": 10,   # mm
    "min_font_size": 8,        # px
    "max_font_size": 24,       # px
    "min_border_width": 0.5,   # mm
    "max_border_width": 3,     # mm
}

DEFAULT_CUSTOM_BADGE_VALUES = {
    "shape": "circle",
    "width": 20,
    "height": 20,
    "border_radius": 4,
    "text": "バッジ",
    "background_color": "#3b82f6",
    "text_color": "#ffffff",
    "font_size": 12,
    "border_enabled": True,
    "border_color": "#ffffff",
    "border_width": 1,
    "badge_align": "center",
    "badge_vertical_align": "middle",
}

# Fields defaulted when the input is missing/empty/zero ("falsy"), versus
# fields defaulted only when the input is missing ("missing").
DEFAULTING_POLICY = {
    "shape": "falsy",
    "width": "falsy",
    "height": "falsy",
    "border_radius": "falsy",
    "text": "falsy",
    "background_color": "falsy",
    "text_color": "falsy",
    "font_size": "falsy",
    "border_enabled": "missing",
    "border_color": "falsy",
    "border_width": "falsy",
    "badge_align": "falsy",
    "badge_vertical_align": "falsy",
}

# snake_case attribute -> persisted camelCase key
_JSON_KEYS = {
    "border_radius": "borderRadius",
    "background_color": "backgroundColor",
    "text_color": "textColor",
    "font_size": "fontSize",
    "border_enabled": "borderEnabled",
    "border_color": "borderColor",
    "border_width": "borderWidth",
    "badge_align": "badgeAlign",
    "badge_vertical_align": "badgeVerticalAlign",
    "image_settings": "imageSettings",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "file_name": "fileName",
    "original_width": "originalWidth",
    "original_height": "originalHeight",
}


def _json_key(name: str) -> str:
    return _JSON_KEYS.get(name, name)


def _from_json(cls, d: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the dataclass fields of cls out of a camelCase dict."""
    out = {}
    for f in fields(cls):
        key = _json_key(f.name)
        if key in d:
            out[f.name] = d[key]
        elif f.name in d:
            out[f.name] = d[f.name]
    return out


@dataclass
class CropRect:
    """Crop window as fractions (0-1) of the original image."""
    x: float = 0.0
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "CropRect":
        return cls(**_from_json(cls, d))


@dataclass
class ImageSettings:
    src: str  # data URL of the embedded raster
    original_width: int
    original_height: int
    file_name: Optional[str] = None
    crop: Optional[CropRect] = None

    def to_dict(self) -> dict:
        d = {
            "src": self.src,
            "originalWidth": self.original_width,
            "originalHeight": self.original_height,
        }
        if self.file_name is not None:
            d["fileName"] = self.file_name
        if self.crop is not None:
            d["crop"] = self.crop.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "ImageSettings":
        kwargs = _from_json(cls, d)
        kwargs.setdefault("src", "")
        kwargs.setdefault("original_width", 0)
        kwargs.setdefault("original_height", 0)
        crop = kwargs.get("crop")
        if isinstance(crop, dict):
            kwargs["crop"] = CropRect.from_dict(crop)
        return cls(**kwargs)


@dataclass
class CustomBadgeInput:
    """Badge fields supplied by a caller; None means "not given"."""
    name: str
    type: str  # "text" or "image"
    shape: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    border_radius: Optional[float] = None
    text: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    font_size: Optional[float] = None
    border_enabled: Optional[bool] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    badge_align: Optional[str] = None
    badge_vertical_align: Optional[str] = None
    image_settings: Optional[ImageSettings] = None

    @classmethod
    def from_dict(cls, d: dict) -> "CustomBadgeInput":
        kwargs = _from_json(cls, d)
        kwargs.setdefault("name", "")
        kwargs.setdefault("type", "text")
        settings = kwargs.get("image_settings")
        if isinstance(settings, dict):
            kwargs["image_settings"] = ImageSettings.from_dict(settings)
        return cls(**kwargs)


@dataclass
class CustomBadge:
    """A stored badge definition."""
    id: str
    name: str
    type: str
    shape: str = DEFAULT_CUSTOM_BADGE_VALUES["shape"]
    width: float = DEFAULT_CUSTOM_BADGE_VALUES["width"]      # mm
    height: float = DEFAULT_CUSTOM_BADGE_VALUES["height"]    # mm
    border_radius: float = DEFAULT_CUSTOM_BADGE_VALUES["border_radius"]  # mm, rectangle only
    text: str = DEFAULT_CUSTOM_BADGE_VALUES["text"]
    background_color: str = DEFAULT_CUSTOM_BADGE_VALUES["background_color"]
    text_color: str = DEFAULT_CUSTOM_BADGE_VALUES["text_color"]
    font_size: float = DEFAULT_CUSTOM_BADGE_VALUES["font_size"]  # px
    border_enabled: bool = DEFAULT_CUSTOM_BADGE_VALUES["border_enabled"]
    border_color: str = DEFAULT_CUSTOM_BADGE_VALUES["border_color"]
    border_width: float = DEFAULT_CUSTOM_BADGE_VALUES["border_width"]  # mm
    badge_align: str = DEFAULT_CUSTOM_BADGE_VALUES["badge_align"]
    badge_vertical_align: str = DEFAULT_CUSTOM_BADGE_VALUES["badge_vertical_align"]
    image_settings: Optional[ImageSettings] = None
    created_at: int = 0  # ms since epoch
    updated_at: int = 0

    def to_dict(self) -> dict:
        d = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "image_settings":
                if value is None:
                    continue
                value = value.to_dict()
            d[_json_key(f.name)] = value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "CustomBadge":
        kwargs = _from_json(cls, d)
        settings = kwargs.get("image_settings")
        if isinstance(settings, dict):
            kwargs["image_settings"] = ImageSettings.from_dict(settings)
        return cls(**kwargs)

    def with_input(self, badge_input: CustomBadgeInput, updated_at: int) -> "CustomBadge":
        """Overwrite every mutable field from an input, keeping id and createdAt."""
        return replace(
            self,
            name=badge_input.name,
            type=badge_input.type,
            image_settings=badge_input.image_settings,
            updated_at=updated_at,
            **resolve_defaults(badge_input),
        )


def _is_missing(value: Any) -> bool:
    return value is None


def _is_falsy(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return value is False


def resolve_defaults(badge_input: CustomBadgeInput) -> Dict[str, Any]:
    """Apply DEFAULTING_POLICY to every optional field of an input."""
    resolved = {}
    for name, policy in DEFAULTING_POLICY.items():
        value = getattr(badge_input, name)
        use_default = _is_missing(value) if policy == "missing" else _is_falsy(value)
        resolved[name] = DEFAULT_CUSTOM_BADGE_VALUES[name] if use_default else value
    return resolved


def build_badge(badge_id: str, badge_input: CustomBadgeInput, now: int) -> CustomBadge:
    """Create a new badge from an input with defaults applied."""
    return CustomBadge(
        id=badge_id,
        name=badge_input.name,
        type=badge_input.type,
        image_settings=badge_input.image_settings,
        created_at=now,
        updated_at=now,
        **resolve_defaults(badge_input),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_name(name: Optional[str]) -> Optional[str]:
    """Return an error message for an unusable badge name, else None."""
    if name is not None and not isinstance(name, str):
        return "Badge name must be text"
    if not name or not name.strip():
        return "Badge name is required"
    if len(name) > CUSTOM_BADGE_LIMITS["max_name_length"]:
        return f"Badge name must be {CUSTOM_BADGE_LIMITS['max_name_length']} characters or fewer"
    return None


def validate_text(text: Optional[str]) -> Optional[str]:
    """Return an error message for overlong badge text, else None."""
    if text is not None and not isinstance(text, str):
        return "Badge text must be text"
    if text and len(text) > CUSTOM_BADGE_LIMITS["max_text_length"]:
        return f"Badge text must be {CUSTOM_BADGE_LIMITS['max_text_length']} characters or fewer"
    return None


def _check_range(field_name: str, value: Any, low: float, high: float, unit: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number", field_name)
    if not low <= value <= high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g} {unit}", field_name)


def _check_choice(field_name: str, value: Any, choices: tuple) -> None:
    if value not in choices:
        raise ValidationError(f"{field_name} must be one of {', '.join(choices)}", field_name)


def _check_color(field_name: str, value: Any) -> None:
    try:
        ImageColor.getrgb(value)
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"{field_name} is not a valid color: {value!r}", field_name)


def validate_badge_fields(badge: CustomBadge) -> None:
    """Raise ValidationError if any field of a (defaulted) badge is out of bounds."""
    limits = CUSTOM_BADGE_LIMITS

    message = validate_name(badge.name)
    if message:
        raise ValidationError(message, "name")
    message = validate_text(badge.text)
    if message:
        raise ValidationError(message, "text")

    _check_choice("type", badge.type, BADGE_TYPES)
    _check_choice("shape", badge.shape, BADGE_SHAPES)
    _check_choice("badge_align", badge.badge_align, BADGE_ALIGNS)
    _check_choice("badge_vertical_align", badge.badge_vertical_align, BADGE_VERTICAL_ALIGNS)

    _check_range("width", badge.width, limits["min_size"], limits["max_size"], "mm")
    _check_range("height", badge.height, limits["min_size"], limits["max_size"], "mm")
    _check_range("border_radius", badge.border_radius,
                 limits["min_border_radius"], limits["max_border_radius"], "mm")
    _check_range("font_size", badge.font_size, limits["min_font_size"], limits["max_font_size"], "px")
    _check_range("border_width", badge.border_width,
                 limits["min_border_width"], limits["max_border_width"], "mm")

    for color_field in ("background_color", "text_color", "border_color"):
        _check_color(color_field, getattr(badge, color_field))

    if not isinstance(badge.border_enabled, bool):
        raise ValidationError("border_enabled must be true or false", "border_enabled")

    settings = badge.image_settings
    if settings is None:
        return
    if not isinstance(settings, ImageSettings):
        raise ValidationError("image_settings must be an object", "image_settings")
    if not isinstance(settings.src, str):
        raise ValidationError("image_settings.src must be a data URL string", "image_settings.src")
    if settings.crop is None:
        return
    if not isinstance(settings.crop, CropRect):
        raise ValidationError("crop must be an object", "crop")
    for axis in ("x", "y", "width", "height"):
        _check_range(f"crop.{axis}", getattr(settings.crop, axis), 0, 1, "(fraction)")