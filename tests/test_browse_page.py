"""
Tests for the browse_page tool.
"""
import json

import httpx
import pytest

from persona_scout.errors import UpstreamError, UpstreamTimeoutError
from persona_scout.tools.browse_page import (
    BrowsePageTool,
    check_url,
    html_to_text,
    truncate,
)

from conftest import json_response

PAGE = """
<html>
  <head><title>Jane</title><style>body { color: red; }</style></head>
  <body>
    <script>var tracking = 1;</script>
    <h1>Jane   Doe</h1>
    <p>CTO at
       Acme Robotics.</p>
    <noscript>enable js</noscript>
  </body>
</html>
"""


def _html(text, status_code=200):
    return httpx.Response(status_code, text=text, headers={"content-type": "text/html"})


class TestHelpers:

    def test_html_to_text(self):
        assert html_to_text(PAGE) == "Jane Jane Doe CTO at Acme Robotics."

    def test_truncate(self):
        assert truncate("abcdef", 3) == ("abc", True)
        assert truncate("abc", 3) == ("abc", False)

    @pytest.mark.parametrize("url", [
        "ftp://example.com/file",
        "file:///etc/passwd",
        "http://localhost:8080/",
        "http://127.0.0.1/",
        "http://10.1.2.3/admin",
        "http://169.254.169.254/latest/meta-data",
        "http://[::1]/",
        "http://metadata.google.internal/",
        "https:///nohost",
        "http://[::1",
    ])
    def test_blocked_urls(self, url):
        is_safe, _ = check_url(url)
        assert not is_safe

    def test_malformed_url(self):
        assert check_url("http://[::1") == (False, "Malformed URL")

    def test_public_url_allowed(self):
        assert check_url("https://example.com/about") == (True, "OK")


class TestBrowseHtml:

    @pytest.mark.asyncio
    async def test_strips_html(self):
        def handler(request):
            if request.method == "HEAD":
                return httpx.Response(200, headers={"content-type": "text/html"})
            return _html(PAGE)

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        page = await tool.browse("https://janedoe.dev", "find the job title")

        assert page.text == "Jane Jane Doe CTO at Acme Robotics."
        assert page.content_type == "html"
        assert page.source_url == "https://janedoe.dev"
        assert page.instructions == "find the job title"
        assert not page.truncated

    @pytest.mark.asyncio
    async def test_truncates_long_pages(self):
        def handler(request):
            return _html("<p>" + "word " * 1000 + "</p>")

        tool = BrowsePageTool(max_chars=100, transport=httpx.MockTransport(handler))
        page = await tool.browse("https://example.com")

        assert len(page.text) == 100
        assert page.truncated

    @pytest.mark.asyncio
    async def test_execute_output_is_json(self):
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: _html("<p>hello</p>")))
        result = await tool.execute(url="https://example.com")
        assert json.loads(result.output)["text"] == "hello"

    @pytest.mark.asyncio
    async def test_non_success_status(self):
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: _html("gone", 404)))
        with pytest.raises(UpstreamError) as exc_info:
            await tool.browse("https://example.com/missing")
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_5xx_retried(self):
        gets = []

        def handler(request):
            if request.method == "HEAD":
                return httpx.Response(200)
            gets.append(request)
            if len(gets) == 1:
                return _html("busy", 503)
            return _html("<p>back</p>")

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        page = await tool.browse("https://example.com")

        assert page.text == "back"
        assert len(gets) == 2

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamTimeoutError):
            await tool.browse("https://example.com")

    @pytest.mark.asyncio
    async def test_blocked_url_never_fetched(self):
        requests = []
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: requests.append(r) or _html("x")))
        with pytest.raises(UpstreamError, match="URL blocked"):
            await tool.browse("http://127.0.0.1:8000/admin")
        assert requests == []

    @pytest.mark.asyncio
    async def test_malformed_url_blocked(self):
        requests = []
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: requests.append(r) or _html("x")))
        with pytest.raises(UpstreamError, match="Malformed URL"):
            await tool.browse("http://[::1")
        assert requests == []

    @pytest.mark.asyncio
    async def test_redirect_loop(self):
        def handler(request):
            return httpx.Response(302, headers={"location": "https://example.com/loop"})

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamError, match="redirects"):
            await tool.browse("https://example.com/loop")


class TestBrowsePdf:

    @pytest.mark.asyncio
    async def test_pdf_by_suffix(self, monkeypatch, config):
        monkeypatch.setattr(config.tools, "pdf_extractor_url", "http://extractor.internal/")
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url)))
            assert json.loads(request.content) == {"url": "https://example.com/cv.PDF"}
            return json_response({"text": "Jane  Doe\n\nCurriculum vitae"})

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        page = await tool.browse("https://example.com/cv.PDF")

        assert seen == [("POST", "http://extractor.internal/extract")]
        assert page.content_type == "pdf"
        assert page.text == "Jane Doe Curriculum vitae"

    @pytest.mark.asyncio
    async def test_pdf_by_content_type(self, monkeypatch, config):
        monkeypatch.setattr(config.tools, "pdf_extractor_url", "http://extractor.internal")

        def handler(request):
            if request.method == "HEAD":
                return httpx.Response(200, headers={"content-type": "application/pdf"})
            assert request.url.path == "/extract"
            return json_response({"text": "resume"})

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        page = await tool.browse("https://example.com/download?id=7")

        assert page.content_type == "pdf"
        assert page.text == "resume"

    @pytest.mark.asyncio
    async def test_pdf_without_extractor(self, monkeypatch):
        monkeypatch.delenv("PDF_EXTRACTOR_URL", raising=False)
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with pytest.raises(UpstreamError, match="PDF_EXTRACTOR_URL"):
            await tool.browse("https://example.com/cv.pdf")

    @pytest.mark.asyncio
    async def test_extractor_error(self, monkeypatch, config):
        monkeypatch.setattr(config.tools, "pdf_extractor_url", "http://extractor.internal")
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: httpx.Response(422, text="not a pdf")))
        with pytest.raises(UpstreamError) as exc_info:
            await tool.browse("https://example.com/cv.pdf")
        assert exc_info.value.status == 422


class TestRenderFallback:

    @pytest.mark.asyncio
    async def test_thin_page_rendered(self, monkeypatch, config):
        monkeypatch.setattr(config.tools, "render_url", "http://render.internal")
        rendered = "Jane Doe " * 50

        def handler(request):
            if request.url.host == "render.internal":
                assert "spa.example.com" in str(request.url)
                return httpx.Response(200, text=rendered)
            return _html("<div id='root'></div>")

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        page = await tool.browse("https://spa.example.com/")

        assert page.text == rendered.strip()

    @pytest.mark.asyncio
    async def test_renderer_failure_keeps_fetched_text(self, monkeypatch, config):
        monkeypatch.setattr(config.tools, "render_url", "http://render.internal")

        def handler(request):
            if request.url.host == "render.internal":
                return httpx.Response(404)
            return _html("<p>short</p>")

        tool = BrowsePageTool(transport=httpx.MockTransport(handler))
        page = await tool.browse("https://spa.example.com/")

        assert page.text == "short"

    @pytest.mark.asyncio
    async def test_no_renderer_configured(self, monkeypatch):
        monkeypatch.delenv("RENDER_URL", raising=False)
        tool = BrowsePageTool(transport=httpx.MockTransport(lambda r: _html("<p>short</p>")))
        page = await tool.browse("https://example.com")
        assert page.text == "short"
