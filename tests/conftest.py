import base64
import itertools
from io import BytesIO

import pytest
from PIL import Image


@pytest.fixture
def memory_storage():
    from models.storage import MemoryStorage

    return MemoryStorage()


@pytest.fixture
def clock():
    """Millisecond clock advancing one second per call."""
    counter = itertools.count(1_700_000_000_000, 1000)
    return lambda: next(counter)


@pytest.fixture
def store(memory_storage, clock):
    from models.badge_catalog import BadgeCatalogStore

    return BadgeCatalogStore(memory_storage, clock=clock)


@pytest.fixture
def make_input():
    from models.custom_badge import CustomBadgeInput

    def _make(name="NEW", **kwargs):
        kwargs.setdefault("type", "text")
        return CustomBadgeInput(name=name, **kwargs)

    return _make


@pytest.fixture
def split_png_data_url():
    """4x4 PNG: left half red, right half green."""
    img = Image.new("RGBA", (4, 4), (0, 255, 0, 255))
    for x in range(2):
        for y in range(4):
            img.putpixel((x, y), (255, 0, 0, 255))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
