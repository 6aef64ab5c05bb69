"""
Test for the ar5iv figure extractor
"""
import requests

from conftest import FakeResponse, FakeSession
from scrollxiv.crawler.ar5iv_client import (
    NOT_AVAILABLE_ERROR,
    Ar5ivClient,
    strip_html,
    strip_version,
)


HTML = """
<html><body>
<figure id="S1.F1" class="ltx_figure">
  <img src="/html/2401.00001/assets/x1.png" id="S1.F1.g1" class="ltx_graphics" alt="Overview diagram">
  <figcaption class="ltx_caption"><span class="ltx_tag">Figure 1: </span>The <b>overall</b>
    architecture.</figcaption>
</figure>
<figure id="S2.T1" class="ltx_table">
  <img src="/html/2401.00001/assets/table.png">
  <figcaption>Table 1: not a figure</figcaption>
</figure>
<figure id="S2.F2" class="ltx_figure ltx_align_center">
  <p>An equation rendered as text, no image here.</p>
  <figcaption>Figure 2: equation</figcaption>
</figure>
<figure id="S3.F3" class="ltx_figure">
  <img src="x3.png" class="ltx_graphics">
</figure>
</body></html>
"""


class TestHelpers:
    def test_strip_version(self):
        assert strip_version("2401.00001v3") == "2401.00001"
        assert strip_version("2401.00001") == "2401.00001"

    def test_strip_html(self):
        assert strip_html("<span>Figure 1:</span>  A <i>cat</i>\n") == "Figure 1: A cat"


class TestParseFigures:
    def test_skips_blocks_without_image(self):
        figures = Ar5ivClient().parse_figures(HTML, "2401.00001")
        assert [f.index for f in figures] == [1, 2]

    def test_document_order_and_urls(self):
        first, second = Ar5ivClient().parse_figures(HTML, "2401.00001")
        assert first.url == "https://ar5iv.labs.arxiv.org/html/2401.00001/assets/x1.png"
        assert second.url == "https://ar5iv.labs.arxiv.org/html/2401.00001/x3.png"

    def test_caption_and_alt(self):
        first, second = Ar5ivClient().parse_figures(HTML, "2401.00001")
        assert first.caption == "Figure 1: The overall architecture."
        assert first.alt == "Overview diagram"
        assert second.caption == "Figure 2"
        assert second.alt is None

    def test_absolute_url_kept(self):
        html = '<figure class="ltx_figure"><img src="https://cdn.example.org/a.png"></figure>'
        figures = Ar5ivClient().parse_figures(html, "2401.00001")
        assert figures[0].url == "https://cdn.example.org/a.png"


class TestExtractFigures:
    def test_fetches_clean_id(self):
        session = FakeSession(FakeResponse(200, HTML))
        result = Ar5ivClient(session=session).extract_figures("2401.00001v2")

        assert result.error is None
        assert len(result.figures) == 2
        assert session.calls[0]["url"] == "https://ar5iv.labs.arxiv.org/html/2401.00001"
        assert "ScrollXiv" in session.calls[0]["headers"]["User-Agent"]

    def test_404_is_not_available(self):
        session = FakeSession(FakeResponse(404, "missing"))
        result = Ar5ivClient(session=session).extract_figures("2401.00001")
        assert result.figures == []
        assert result.error == NOT_AVAILABLE_ERROR

    def test_other_status(self):
        session = FakeSession(FakeResponse(502, "bad gateway"))
        result = Ar5ivClient(session=session).extract_figures("2401.00001")
        assert result.figures == []
        assert result.error == "ar5iv returned 502"

    def test_transport_error_does_not_raise(self):
        session = FakeSession(exc=requests.ConnectionError("connection refused"))
        result = Ar5ivClient(session=session).extract_figures("2401.00001")
        assert result.figures == []
        assert result.error == "connection refused"
