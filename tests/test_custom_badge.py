import pytest

from models.custom_badge import (
    DEFAULT_CUSTOM_BADGE_VALUES,
    CropRect,
    CustomBadge,
    CustomBadgeInput,
    ImageSettings,
    build_badge,
    resolve_defaults,
    validate_badge_fields,
    validate_name,
    validate_text,
)
from models.errors import ValidationError


def test_missing_fields_take_defaults(make_input):
    resolved = resolve_defaults(make_input())
    assert resolved == DEFAULT_CUSTOM_BADGE_VALUES


def test_falsy_scalars_take_defaults(make_input):
    resolved = resolve_defaults(make_input(width=0, text="", background_color="", border_radius=0))
    assert resolved["width"] == 20
    assert resolved["text"] == "バッジ"
    assert resolved["background_color"] == "#3b82f6"
    # zero radius is falsy, so it also falls back
    assert resolved["border_radius"] == 4


def test_border_enabled_false_is_preserved(make_input):
    assert resolve_defaults(make_input(border_enabled=False))["border_enabled"] is False
    assert resolve_defaults(make_input())["border_enabled"] is True


def test_explicit_values_win(make_input):
    resolved = resolve_defaults(make_input(shape="rectangle", width=35, font_size=18, badge_align="left"))
    assert resolved["shape"] == "rectangle"
    assert resolved["width"] == 35
    assert resolved["font_size"] == 18
    assert resolved["badge_align"] == "left"


def test_build_badge_stamps_identity_and_time(make_input):
    badge = build_badge("badge-1-abc", make_input(name="SALE"), 1234)
    assert badge.id == "badge-1-abc"
    assert badge.name == "SALE"
    assert badge.created_at == badge.updated_at == 1234


def test_to_dict_uses_camel_case_and_omits_missing_image():
    badge = CustomBadge(id="b1", name="MUST", type="text", created_at=5, updated_at=6)
    d = badge.to_dict()
    assert d["borderEnabled"] is True
    assert d["backgroundColor"] == "#3b82f6"
    assert d["createdAt"] == 5
    assert "imageSettings" not in d
    assert "border_enabled" not in d


def test_from_dict_round_trip_with_image_settings():
    d = {
        "id": "b2", "name": "Cover", "type": "image", "shape": "rectangle",
        "width": 30, "height": 15, "borderRadius": 2, "text": "x",
        "backgroundColor": "#000000", "textColor": "#ffffff", "fontSize": 10,
        "borderEnabled": False, "borderColor": "#ff0000", "borderWidth": 0.5,
        "badgeAlign": "right", "badgeVerticalAlign": "bottom",
        "imageSettings": {
            "src": "data:image/png;base64,AAAA", "fileName": "a.png",
            "originalWidth": 640, "originalHeight": 480,
            "crop": {"x": 0.1, "y": 0.2, "width": 0.5, "height": 0.5},
        },
        "createdAt": 1, "updatedAt": 2,
    }
    badge = CustomBadge.from_dict(d)
    assert badge.image_settings.crop == CropRect(0.1, 0.2, 0.5, 0.5)
    assert badge.border_enabled is False
    assert badge.to_dict() == d


def test_input_from_camel_case_dict():
    badge_input = CustomBadgeInput.from_dict({
        "name": "NEW", "type": "image", "borderEnabled": False, "fontSize": 14,
        "imageSettings": {"src": "data:,", "originalWidth": 1, "originalHeight": 1},
    })
    assert badge_input.border_enabled is False
    assert badge_input.font_size == 14
    assert isinstance(badge_input.image_settings, ImageSettings)
    assert badge_input.shape is None


@pytest.mark.parametrize("name", ["", "   ", None, "x" * 21])
def test_validate_name_rejects(name):
    assert validate_name(name) is not None


@pytest.mark.parametrize("name", ["A", "x" * 20, "おすすめ"])
def test_validate_name_accepts(name):
    assert validate_name(name) is None


def test_validate_text():
    assert validate_text("") is None
    assert validate_text(None) is None
    assert validate_text("x" * 10) is None
    assert validate_text("x" * 11) is not None


def _badge(**kwargs):
    return CustomBadge(id="b", name=kwargs.pop("name", "ok"), type=kwargs.pop("type", "text"), **kwargs)


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"width": 9}, "width"),
        ({"height": 51}, "height"),
        ({"border_radius": 11}, "border_radius"),
        ({"font_size": 7}, "font_size"),
        ({"font_size": 25}, "font_size"),
        ({"border_width": 0.4}, "border_width"),
        ({"border_width": 3.5}, "border_width"),
        ({"shape": "triangle"}, "shape"),
        ({"type": "video"}, "type"),
        ({"badge_align": "middle"}, "badge_align"),
        ({"badge_vertical_align": "center"}, "badge_vertical_align"),
        ({"background_color": "not-a-color"}, "background_color"),
        ({"text": "x" * 11}, "text"),
        ({"name": ""}, "name"),
    ],
)
def test_validate_badge_fields_bounds(kwargs, field):
    with pytest.raises(ValidationError) as excinfo:
        validate_badge_fields(_badge(**kwargs))
    assert excinfo.value.field == field


def test_validate_badge_fields_accepts_limits():
    validate_badge_fields(_badge(width=10, height=50, border_radius=0, font_size=8, border_width=3))
    validate_badge_fields(_badge(width=50, height=10, border_radius=10, font_size=24, border_width=0.5))


def test_crop_fractions_must_be_within_unit_interval():
    settings = ImageSettings(src="data:,", original_width=10, original_height=10,
                             crop=CropRect(x=0.5, y=0, width=1.2, height=1))
    with pytest.raises(ValidationError) as excinfo:
        validate_badge_fields(_badge(type="image", image_settings=settings))
    assert excinfo.value.field == "crop.width"


@pytest.mark.parametrize("name", [123, ["SALE"], {"n": 1}])
def test_validate_name_rejects_non_text(name):
    assert validate_name(name) is not None


def test_validate_text_rejects_non_text():
    assert validate_text(5) is not None
    assert validate_text(["x"]) is not None


@pytest.mark.parametrize(
    "settings, field",
    [
        ("data:image/png;base64,AAAA", "image_settings"),
        (ImageSettings(src=42, original_width=1, original_height=1), "image_settings.src"),
        (ImageSettings(src="data:,", original_width=1, original_height=1, crop="all"), "crop"),
        (ImageSettings(src="data:,", original_width=1, original_height=1,
                       crop=CropRect(x=None)), "crop.x"),
    ],
)
def test_malformed_image_settings(settings, field):
    with pytest.raises(ValidationError) as excinfo:
        validate_badge_fields(_badge(type="image", image_settings=settings))
    assert excinfo.value.field == field
