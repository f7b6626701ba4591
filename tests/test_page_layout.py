from models.page_layout import (
    POPS_PER_PAGE,
    PageDescriptor,
    PageDimensions,
    PopPlacement,
    generate_a4_layout,
    placement_pixels,
    required_pages,
)


def test_required_pages():
    assert required_pages(0) == 0
    assert required_pages(1) == 1
    assert required_pages(8) == 1
    assert required_pages(9) == 2
    assert required_pages(17) == 3


def test_layout_splits_into_pages_of_eight():
    pages = generate_a4_layout([{"title": str(i)} for i in range(11)])
    assert [len(p.pops) for p in pages] == [POPS_PER_PAGE, 3]
    assert [p.page_number for p in pages] == [1, 2]
    assert pages[1].pops[0].pop == {"title": "8"}


def test_layout_fills_rows_left_to_right():
    page = generate_a4_layout(list(range(8)))[0]
    coords = [(p.x, p.y) for p in page.pops]
    assert coords == [
        (0, 0), (100, 0),
        (0, 74), (100, 74),
        (0, 148), (100, 148),
        (0, 222), (100, 222),
    ]
    assert all((p.width, p.height) == (100, 74) for p in page.pops)
    assert page.dimensions == PageDimensions(210, 297)


def test_empty_layout():
    assert generate_a4_layout([]) == []


def test_placement_pixels_rounds_each_value():
    placement = PopPlacement(x=1.5, y=3.0, width=100, height=74)
    assert placement_pixels(placement, 300) == (18, 35, 1181, 874)


def test_descriptor_dict_round_trip():
    page = generate_a4_layout([{"title": "A"}, {"title": "B"}])[0]
    d = page.to_dict()
    assert d["pageNumber"] == 1
    assert d["dimensions"] == {"width": 210.0, "height": 297.0}
    assert PageDescriptor.from_dict(d) == page


def test_descriptor_from_partial_dict():
    page = PageDescriptor.from_dict({"pops": [{"x": 5, "y": 6, "width": 10, "height": 20}]})
    assert page.dimensions == PageDimensions()
    assert page.page_number == 1
    assert page.pops[0].pop is None


def test_malformed_geometry_is_coerced():
    page = PageDescriptor.from_dict({
        "pageNumber": "two",
        "dimensions": {"width": None, "height": "tall"},
        "pops": [{"x": None, "y": "a", "width": float("nan"), "height": True}, "junk"],
    })
    assert page.page_number == 1
    assert page.dimensions == PageDimensions(210, 297)
    assert page.pops == [PopPlacement(x=0.0, y=0.0, width=0.0, height=0.0)]


def test_non_dict_descriptor_parts():
    assert PageDescriptor.from_dict(None) == PageDescriptor()
    assert PageDescriptor.from_dict({"dimensions": None, "pops": "x"}) == PageDescriptor()
