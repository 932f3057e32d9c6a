import pytest

from app.parser.frontmatter import FrontmatterSyntaxError, parse_frontmatter

EXAMPLE = "---\ntitle: T\ncategory: example\nlayout: content.njk\n---\n# Hi"


def test_splits_frontmatter_and_body():
    doc = parse_frontmatter(EXAMPLE)
    assert doc.frontmatter == {"title": "T", "category": "example", "layout": "content.njk"}
    assert doc.content == "# Hi"


def test_document_without_frontmatter():
    doc = parse_frontmatter("# Just a heading\n\nSome text.\n")
    assert doc.frontmatter == {}
    assert doc.content == "# Just a heading\n\nSome text.\n"


def test_delimiter_must_open_the_document():
    text = "Intro\n---\ntitle: T\n---\n"
    doc = parse_frontmatter(text)
    assert doc.frontmatter == {}
    assert doc.content == text


def test_empty_frontmatter_block():
    doc = parse_frontmatter("---\n---\nBody")
    assert doc.frontmatter == {}
    assert doc.content == "Body"


def test_missing_closing_delimiter_consumes_document():
    doc = parse_frontmatter("---\ntitle: T\n")
    assert doc.frontmatter == {"title": "T"}
    assert doc.content == ""


def test_byte_order_mark_is_ignored():
    doc = parse_frontmatter("\ufeff---\ntitle: T\n---\nBody")
    assert doc.frontmatter == {"title": "T"}


def test_crlf_line_endings():
    doc = parse_frontmatter("---\r\ntitle: T\r\n---\r\nBody")
    assert doc.frontmatter == {"title": "T"}
    assert doc.content == "Body"


def test_dates_become_iso_strings():
    doc = parse_frontmatter("---\ndateAdded: 2024-11-06\ntags: [a, b]\n---\n")
    assert doc.frontmatter["dateAdded"] == "2024-11-06"
    assert doc.frontmatter["tags"] == ["a", "b"]


def test_invalid_yaml_raises_syntax_error():
    with pytest.raises(FrontmatterSyntaxError) as exc_info:
        parse_frontmatter("---\ntitle: [unclosed\n---\nBody")
    assert str(exc_info.value)
    assert exc_info.value.line >= 1


def test_mapping_value_error_reports_line():
    with pytest.raises(FrontmatterSyntaxError) as exc_info:
        parse_frontmatter("---\ntitle: ok\nbad: a: b\n---\n")
    # line 1 is the opening delimiter, "bad" sits on line 3
    assert exc_info.value.line == 3


def test_non_mapping_frontmatter_rejected():
    with pytest.raises(FrontmatterSyntaxError):
        parse_frontmatter("---\n- a\n- b\n---\nBody")
