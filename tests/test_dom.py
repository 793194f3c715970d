"""Tests for the host document capability."""

import pytest

from clearpage.services.dom import FrameAccessError, HostDocument, computed_style, origin_of

URL = "https://example.com/page"


def _doc(html: str, frames=None) -> HostDocument:
    return HostDocument.from_html(html, URL, frames)


class TestResolve:
    def test_relative_path(self):
        assert _doc("<p>x</p>").resolve("/docs/intro") == "https://example.com/docs/intro"

    def test_path_is_percent_decoded(self):
        assert _doc("<p>x</p>").resolve("/a%20b") == "https://example.com/a b"

    def test_base_href_overrides_document_url(self):
        doc = _doc('<html><head><base href="https://cdn.example.com/assets/"></head><body></body></html>')
        assert doc.resolve("img.png") == "https://cdn.example.com/assets/img.png"

    def test_non_http_scheme_untouched(self):
        assert _doc("<p>x</p>").resolve("mailto:desk@example.com") == "mailto:desk@example.com"

    def test_unparsable_address_kept_verbatim(self):
        assert _doc("<p>x</p>").resolve("http://[::1") == "http://[::1"


class TestOrigin:
    def test_origin_is_lowercased(self):
        assert origin_of("HTTPS://Example.COM/x?y=1") == "https://example.com"

    def test_relative_address_has_no_origin(self):
        assert origin_of("/relative/path") == ""

    def test_same_origin(self):
        doc = _doc("<p>x</p>")
        assert doc.is_same_origin("https://example.com/other")
        assert not doc.is_same_origin("https://example.org/other")


class TestDocumentProperties:
    def test_title_whitespace_collapsed(self):
        doc = _doc("<html><head><title>\n  Annual   report </title></head><body></body></html>")
        assert doc.title == "Annual report"

    def test_missing_title_and_lang(self):
        doc = _doc("<p>x</p>")
        assert doc.title == ""
        assert doc.lang == ""

    def test_lang(self):
        assert _doc('<html lang="de"><body></body></html>').lang == "de"


class TestChildren:
    def test_shadow_content_first(self):
        doc = _doc(
            '<div id="host"><span>Light</span>'
            '<template shadowrootmode="open"><p>Shadow</p></template></div>'
        )
        host = doc.get_element_by_id("host")
        assert [child.name for child in doc.children(host)] == ["p", "span"]

    def test_closed_shadow_root_not_exposed(self):
        doc = _doc('<div id="host"><template shadowrootmode="closed"><p>Secret</p></template></div>')
        host = doc.get_element_by_id("host")
        assert [child.name for child in doc.children(host)] == ["template"]

    def test_closest(self):
        doc = _doc('<section id="s"><div><p id="p">x</p></div></section>')
        p = doc.get_element_by_id("p")
        assert HostDocument.closest(p, lambda node: node.name == "section")["id"] == "s"
        assert HostDocument.closest(p, lambda node: node.name == "table") is None


class TestComputedStyle:
    def test_inline_declarations(self):
        el = _doc('<div id="d" style="Display: none !important; width:0">x</div>').get_element_by_id("d")
        assert computed_style(el) == {"display": "none", "width": "0"}

    def test_size_attributes(self):
        el = _doc('<img id="i" width="1" height="1">').get_element_by_id("i")
        assert computed_style(el) == {"width": "1", "height": "1"}


class TestFrameDocument:
    def _frame(self, html: str, frames=None):
        doc = _doc(html, frames)
        return doc, doc.select("iframe")[0]

    def test_srcdoc(self):
        doc, frame = self._frame('<iframe srcdoc="<p>Inline frame</p>"></iframe>')
        assert doc.frame_document(frame).body.get_text() == "Inline frame"

    def test_supplied_same_origin_markup(self):
        doc, frame = self._frame(
            '<iframe src="/embed"></iframe>', {"https://example.com/embed": "<p>Embedded</p>"}
        )
        frame_doc = doc.frame_document(frame)
        assert frame_doc.url == "https://example.com/embed"
        assert frame_doc.body.get_text() == "Embedded"

    def test_cross_origin_raises(self):
        doc, frame = self._frame('<iframe src="https://ads.example.net/slot"></iframe>')
        with pytest.raises(FrameAccessError):
            doc.frame_document(frame)

    def test_unavailable_markup_raises(self):
        doc, frame = self._frame('<iframe src="/missing"></iframe>')
        with pytest.raises(FrameAccessError):
            doc.frame_document(frame)
