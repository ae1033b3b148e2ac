"""Tests for the document rewriter."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from docblog.content.rewriter import (
    HIDE_STYLE,
    DocumentRewriter,
    RewriteError,
    rewrite_document,
    shift_heading,
    strip_font_declarations,
    unwrap_redirect,
)

EXPORTED = b"""<html><head><meta content="text/html; charset=UTF-8" http-equiv="content-type">
<style type="text/css">.c1{color:#000000;font-family:"Arial"}</style></head>
<body class="c5 doc-content" style="background-color:#ffffff;max-width:451pt;padding:72pt">
<p class="c3 title" id="h.title" style="color:#000000;font-size:26pt;margin:0"><span>Post title</span></p>
<p class="subtitle"><span>Subtitle</span></p>
<h1 id="h.1" style="font-weight:700;padding-top:20pt">Hi</h1>
<h3>Section</h3>
<h6>Deepest</h6>
<p class="c1"><span style="color:#1155cc;text-decoration:underline"><a href="https://www.google.com/url?q=https://example.com/page&amp;sa=D&amp;source=editors&amp;ust=1700000000&amp;usg=AOv">link</a></span></p>
<p><a href="https://example.org/direct">direct</a></p>
<p><span style="overflow:hidden;width:100px"><img alt="" src="images/image1.png" style="width:100px"></span></p>
</body></html>"""


def _parse(content: bytes) -> BeautifulSoup:
    return BeautifulSoup(content, "lxml")


class TestStripFontDeclarations:
    """Test inline style filtering."""

    def test_removes_color_and_font_declarations(self) -> None:
        style = "color:#000;font-weight:700;margin:0;font-size:11pt"
        assert strip_font_declarations(style) == "margin:0;"

    def test_keeps_unrelated_declarations_in_order(self) -> None:
        style = "margin:0;padding:2pt;text-align:left;"
        assert strip_font_declarations(style) == "margin:0;padding:2pt;text-align:left;"

    def test_background_color_survives(self) -> None:
        assert strip_font_declarations("background-color:#fff;color:red") == "background-color:#fff;"

    def test_handles_whitespace_and_case(self) -> None:
        assert strip_font_declarations(" Color: red ; margin: 0 ") == "margin: 0;"

    def test_empty_style(self) -> None:
        assert strip_font_declarations("") == ""


class TestUnwrapRedirect:
    """Test redirect wrapper handling."""

    def test_unwraps_q_parameter(self) -> None:
        href = "https://www.google.com/url?q=https://example.com/a?b%3D1&sa=D&ust=123"
        assert unwrap_redirect(href) == "https://example.com/a?b=1"

    def test_other_links_unchanged(self) -> None:
        assert unwrap_redirect("https://example.com/url?q=x") == "https://example.com/url?q=x"

    def test_wrapper_without_q_unchanged(self) -> None:
        href = "https://www.google.com/url?sa=D"
        assert unwrap_redirect(href) == href


class TestShiftHeading:
    @pytest.mark.parametrize(
        "name,expected",
        [("h1", "h2"), ("h2", "h3"), ("h3", "h4"), ("h4", "h5"), ("h5", "h6"), ("h6", "h6")],
    )
    def test_shift(self, name: str, expected: str) -> None:
        assert shift_heading(name) == expected


class TestDocumentRewriter:
    """Test the full rewrite of an exported document."""

    @pytest.fixture
    def soup(self) -> BeautifulSoup:
        return _parse(DocumentRewriter("doc123").rewrite(EXPORTED))

    def test_body_style_is_blanked(self, soup: BeautifulSoup) -> None:
        assert soup.body["style"] == ""

    def test_style_elements_removed(self, soup: BeautifulSoup) -> None:
        assert soup.find("style") is None
        assert soup.find("meta") is not None

    def test_font_declarations_removed_everywhere(self, soup: BeautifulSoup) -> None:
        for tag in soup.find_all(style=True):
            properties = [
                declaration.split(":", 1)[0]
                for declaration in tag["style"].split(";")
                if declaration
            ]
            assert "color" not in properties
            assert not any(prop.startswith("font-") for prop in properties)

    def test_background_color_is_a_different_property(self) -> None:
        # Matching is per property name, so a "color:red;" substring inside
        # background-color is kept.
        content = b'<html><body><p style="background-color:red;color:red;margin:0">x</p></body></html>'

        out = DocumentRewriter("doc123").rewrite(content)

        assert b'<p style="background-color:red;margin:0;">' in out

    def test_headings_shifted(self, soup: BeautifulSoup) -> None:
        assert soup.find("h1") is None
        assert soup.find("h2").get_text() == "Hi"
        assert soup.find("h2")["style"] == "padding-top:20pt;"
        assert soup.find("h4").get_text() == "Section"
        assert soup.find("h6").get_text() == "Deepest"

    def test_redirect_links_unwrapped(self, soup: BeautifulSoup) -> None:
        hrefs = [a["href"] for a in soup.find_all("a")]
        assert hrefs == ["https://example.com/page", "https://example.org/direct"]

    def test_image_src_normalized(self, soup: BeautifulSoup) -> None:
        img = soup.find("img")
        assert img["src"] == "/doc123-image1.png"
        assert img["style"] == "width:100px;"

    def test_image_src_with_prefix(self) -> None:
        soup = _parse(DocumentRewriter("doc123", assets_prefix="assets").rewrite(EXPORTED))
        assert soup.find("img")["src"] == "/assets/doc123-image1.png"

    def test_title_and_subtitle_hidden_not_removed(self, soup: BeautifulSoup) -> None:
        title = soup.find("p", id="h.title")
        assert title is not None
        assert title.get_text() == "Post title"
        assert title["style"].endswith(";" + HIDE_STYLE)
        assert title["style"] == "margin:0;" + HIDE_STYLE

        subtitle = soup.find("p", class_="subtitle")
        assert subtitle["style"].endswith(";" + HIDE_STYLE)

    def test_sibling_order_preserved(self, soup: BeautifulSoup) -> None:
        names = [child.name for child in soup.body.find_all(recursive=False)]
        assert names == ["p", "p", "h2", "h4", "h6", "p", "p", "p"]

    def test_output_independent_of_worker_count(self) -> None:
        sequential = DocumentRewriter("doc123", max_workers=1).rewrite(EXPORTED)
        parallel = DocumentRewriter("doc123", max_workers=8).rewrite(EXPORTED)
        assert sequential == parallel

    def test_deep_tree(self) -> None:
        depth = 100
        content = (
            b"<html><body>"
            + b"<div>" * depth
            + b'<h1 style="color:red">deep</h1>'
            + b"</div>" * depth
            + b"</body></html>"
        )
        soup = _parse(DocumentRewriter("d", max_workers=2).rewrite(content))
        heading = soup.find("h2")
        assert heading.get_text() == "deep"
        assert heading["style"] == ""

    def test_empty_document_raises(self) -> None:
        with pytest.raises(RewriteError):
            DocumentRewriter("doc123").rewrite(b"")

    def test_invalid_worker_count(self) -> None:
        with pytest.raises(ValueError):
            DocumentRewriter("doc123", max_workers=0)

    def test_rewrite_document_wrapper(self) -> None:
        content = b'<html><body style="color:red"><img src="images/pic.png"></body></html>'
        soup = _parse(rewrite_document("doc123", content))
        assert soup.body["style"] == ""
        assert soup.find("img")["src"] == "/doc123-pic.png"
