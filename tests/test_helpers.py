"""Element hierarchy, source line lookup, size formatting and contrast math."""

import pytest

from site_scanner import (
    Finding, contrast_ratio, element_hierarchy, find_line, format_size,
    line_location, parse_color,
)


def test_hierarchy_walks_to_document_root(make_page):
    page = make_page('<html><body><section class="a b"><p id="x">t</p></section></body></html>')
    p = page.soup.find("p")
    assert element_hierarchy(p) == "html > body > section.a.b > p#x"


def test_hierarchy_of_root_element(make_page):
    page = make_page("<html><body></body></html>")
    assert element_hierarchy(page.soup.find("html")) == "html"


def test_find_line_is_one_based(make_page):
    html = '<html>\n<body>\n<a href="#top">Top</a>\n</body>\n</html>'
    page = make_page(html)
    link = page.soup.find("a")
    assert find_line(link, page.lines) == 3
    assert line_location(link, page.lines) == "Line 3"


def test_find_line_matches_void_elements_as_written(make_page):
    page = make_page('<html>\n<body>\n<img src="a.png" alt="">\n</body>\n</html>')
    assert find_line(page.soup.find("img"), page.lines) == 3


def test_find_line_returns_zero_when_markup_differs(make_page):
    # single-quoted attributes are re-serialised with double quotes
    page = make_page("<html>\n<body>\n<a href='#top'>Top</a>\n</body>\n</html>")
    link = page.soup.find("a")
    assert find_line(link, page.lines) == 0
    assert line_location(link, page.lines) == "Line 0"


def test_format_size():
    assert format_size(1024) == "1.00 KB"
    assert format_size(153600) == "150.00 KB"
    assert format_size(1536) == "1.50 KB"


def test_contrast_extremes_and_symmetry():
    assert contrast_ratio("#000", "#fff") == pytest.approx(21.0)
    assert contrast_ratio("white", "white") == pytest.approx(1.0)
    assert contrast_ratio("#777777", "#ffffff") == contrast_ratio("#ffffff", "#777777")


def test_contrast_is_deterministic():
    first = contrast_ratio("rgb(10, 120, 200)", "#fafafa")
    assert all(contrast_ratio("rgb(10, 120, 200)", "#fafafa") == first for _ in range(5))


def test_unparseable_colors():
    assert parse_color("transparent") is None
    assert parse_color("inherit") is None
    assert contrast_ratio("inherit", "#fff") is None
    assert parse_color("#FF0000") == (255, 0, 0)


def test_finding_requires_core_fields():
    with pytest.raises(ValueError):
        Finding(category="SEO", issue="", solution="fix", location="Document head")


def test_finding_is_immutable():
    f = Finding(category="SEO", issue="x", solution="y", location="Document head")
    with pytest.raises(AttributeError):
        f.issue = "changed"


def test_find_line_keeps_source_attribute_order(make_page):
    html = '<html>\n<body>\n<img src="a.png" alt="A cat">\n<a href="#" class="x">Top</a>\n</body>\n</html>'
    page = make_page(html)
    assert find_line(page.soup.find("img"), page.lines) == 3
    assert find_line(page.soup.find("a"), page.lines) == 4


def test_malformed_base_href_falls_back_to_page_url(make_page, capsys):
    page = make_page('<html><head><base href="http://[bad/"></head><body></body></html>')
    assert page.base_url == "https://example.com/"
    assert "malformed <base href>" in capsys.readouterr().err
