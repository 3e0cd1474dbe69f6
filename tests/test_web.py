"""Tests for the web page adapter — httpx.MockTransport, no network."""

from __future__ import annotations

import httpx
import pytest

from docrag.documents.schemas import SourceKind
from docrag.documents.web import WebPageLoader, extract_main_text, validate_url
from docrag.errors import FetchFailure, FetchFailureReason, ValidationError

ARTICLE_HTML = """\
<html>
  <head><title>Coral Reefs</title><style>body { color: red; }</style></head>
  <body>
    <nav><a href="/">Home</a> | <a href="/about">About</a></nav>
    <header>Site banner</header>
    <main>
      <h1>Coral Reefs</h1>
      <p>Coral reefs cover less than one percent of the ocean floor.</p>
      <script>trackVisitor("reef");</script>
      <p>They support about a quarter of all marine species.</p>
    </main>
    <footer>Copyright notice</footer>
  </body>
</html>
"""


def _loader(handler, **kwargs) -> WebPageLoader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebPageLoader(client=client, **kwargs)


def _site(pages: dict[str, httpx.Response]):
    def handler(request: httpx.Request) -> httpx.Response:
        return pages.get(request.url.path, httpx.Response(404))
    return handler


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtractMainText:
    def test_keeps_main_content(self):
        title, text = extract_main_text(ARTICLE_HTML)
        assert title == "Coral Reefs"
        assert "less than one percent" in text
        assert "quarter of all marine species" in text

    def test_drops_chrome_and_scripts(self):
        _, text = extract_main_text(ARTICLE_HTML)
        assert "trackVisitor" not in text
        assert "color: red" not in text
        assert "Home" not in text
        assert "Site banner" not in text
        assert "Copyright" not in text

    def test_without_main_uses_body(self):
        _, text = extract_main_text("<html><body><p>Alpha</p><p>Beta</p></body></html>")
        assert text == "Alpha\n\nBeta"

    def test_script_only_page_is_empty(self):
        _, text = extract_main_text("<html><body><script>var x = 1;</script></body></html>")
        assert text == ""


class TestValidateUrl:
    @pytest.mark.parametrize("url", ["", "not a url", "ftp://example.com/file", "http://"])
    def test_rejects(self, url: str):
        with pytest.raises(ValidationError):
            validate_url(url)

    def test_accepts_and_strips(self):
        assert validate_url("  https://example.com/a  ") == "https://example.com/a"


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


class TestWebPageLoader:
    @pytest.mark.asyncio
    async def test_fetch_success(self):
        loader = _loader(_site({
            "/robots.txt": httpx.Response(404),
            "/reefs": httpx.Response(200, text=ARTICLE_HTML, headers={"content-type": "text/html; charset=utf-8"}),
        }))
        result = await loader.load("https://example.com/reefs")
        assert result.kind == SourceKind.WEB_PAGE
        assert result.name == "https://example.com/reefs"
        assert len(result.segments) == 1
        assert "Coral reefs cover" in result.text
        assert result.segments[0].locator is None

    @pytest.mark.asyncio
    async def test_non_200_status(self):
        loader = _loader(_site({"/robots.txt": httpx.Response(404)}))
        with pytest.raises(FetchFailure) as exc_info:
            await loader.load("https://example.com/missing")
        assert exc_info.value.reason == FetchFailureReason.HTTP_STATUS
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_disallowed_by_robots(self):
        loader = _loader(_site({
            "/robots.txt": httpx.Response(200, text="User-agent: *\nDisallow: /private\n"),
            "/private/page": httpx.Response(200, text=ARTICLE_HTML),
        }))
        with pytest.raises(FetchFailure) as exc_info:
            await loader.load("https://example.com/private/page")
        assert exc_info.value.reason == FetchFailureReason.DISALLOWED

    @pytest.mark.asyncio
    async def test_robots_ignored_when_disabled(self):
        loader = _loader(_site({
            "/robots.txt": httpx.Response(200, text="User-agent: *\nDisallow: /\n"),
            "/page": httpx.Response(200, text=ARTICLE_HTML, headers={"content-type": "text/html"}),
        }), respect_robots=False)
        result = await loader.load("https://example.com/page")
        assert "Coral" in result.text

    @pytest.mark.asyncio
    async def test_empty_content_distinguished(self):
        loader = _loader(_site({
            "/robots.txt": httpx.Response(404),
            "/blank": httpx.Response(
                200,
                text="<html><body><script>render()</script></body></html>",
                headers={"content-type": "text/html"},
            ),
        }))
        with pytest.raises(FetchFailure) as exc_info:
            await loader.load("https://example.com/blank")
        assert exc_info.value.reason == FetchFailureReason.EMPTY_CONTENT

    @pytest.mark.asyncio
    async def test_binary_content_rejected(self):
        loader = _loader(_site({
            "/robots.txt": httpx.Response(404),
            "/logo.png": httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"}),
        }))
        with pytest.raises(FetchFailure) as exc_info:
            await loader.load("https://example.com/logo.png")
        assert exc_info.value.reason == FetchFailureReason.UNSUPPORTED_CONTENT

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        loader = _loader(handler, respect_robots=False)
        with pytest.raises(FetchFailure) as exc_info:
            await loader.load("https://unreachable.example/")
        assert exc_info.value.reason == FetchFailureReason.NETWORK

    @pytest.mark.asyncio
    async def test_malformed_url(self):
        loader = _loader(_site({}))
        with pytest.raises(ValidationError):
            await loader.load("example.com/no-scheme")
