"""Web page adapter: fetch a URL and extract its main textual content.

Scripts, styles, navigation and other page chrome are dropped. When the
page has a ``<main>`` or ``<article>`` element only that subtree is kept.
"""

from __future__ import annotations

import asyncio
import logging
import re
from html.parser import HTMLParser
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import httpx

from docrag.documents.schemas import LoadResult, Segment, SourceKind
from docrag.errors import FetchFailure, FetchFailureReason, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "docrag/0.1"

_SKIP_TAGS = {
    "script", "style", "noscript", "template", "svg", "canvas",
    "nav", "header", "footer", "aside", "form", "button", "iframe",
}
_MAIN_TAGS = {"main", "article"}
_BLOCK_TAGS = {
    "p", "div", "section", "br", "li", "ul", "ol", "tr", "table", "pre",
    "blockquote", "h1", "h2", "h3", "h4", "h5", "h6", "dd", "dt", "main", "article",
}
_VOID_TAGS = {"br", "img", "hr", "meta", "link", "input", "source", "wbr"}
_TEXT_CONTENT_TYPES = ("text/html", "application/xhtml+xml", "text/plain")


class _MainTextExtractor(HTMLParser):
    """Collect visible text, tracking whether it sits inside main/article."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._skip_depth = 0
        self._main_depth = 0
        self.title = ""
        self._in_title = False
        self.all_parts: list[str] = []
        self.main_parts: list[str] = []

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag in _VOID_TAGS:
            if tag == "br":
                self._emit("\n")
            return
        if tag in _SKIP_TAGS:
            self._skip_depth += 1
        elif tag in _MAIN_TAGS:
            self._main_depth += 1
        elif tag == "title":
            self._in_title = True
        if tag in _BLOCK_TAGS:
            self._emit("\n")

    def handle_endtag(self, tag: str) -> None:
        if tag in _SKIP_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
        elif tag in _MAIN_TAGS:
            self._main_depth = max(0, self._main_depth - 1)
        elif tag == "title":
            self._in_title = False
        if tag in _BLOCK_TAGS:
            self._emit("\n")

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self.title += data
            return
        self._emit(data)

    def _emit(self, data: str) -> None:
        if self._skip_depth:
            return
        self.all_parts.append(data)
        if self._main_depth:
            self.main_parts.append(data)


def _normalize_whitespace(text: str) -> str:
    lines = [re.sub(r"[ \t\r\f\v]+", " ", line).strip() for line in text.split("\n")]
    return "\n\n".join(line for line in lines if line)


def extract_main_text(html: str) -> tuple[str, str]:
    """Return ``(title, text)`` for an HTML document."""
    parser = _MainTextExtractor()
    parser.feed(html)
    parser.close()
    parts = parser.main_parts if "".join(parser.main_parts).strip() else parser.all_parts
    return parser.title.strip(), _normalize_whitespace("".join(parts))


def validate_url(url: str) -> str:
    """Reject anything that is not an absolute http(s) URL."""
    url = (url or "").strip()
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError(f"Invalid URL: {url!r}", "Invalid URL format.")
    return url


class WebPageLoader:
    """Fetch web pages over HTTP and normalize them into a single segment."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        respect_robots: bool = True,
        follow_redirects: bool = True,
        timeout: float = 20.0,
    ):
        self.user_agent = user_agent
        self.respect_robots = respect_robots
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=follow_redirects,
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def load(self, url: str) -> LoadResult:
        """Fetch ``url`` and extract its main text.

        Raises:
            ValidationError: The URL is malformed.
            FetchFailure: Network error, timeout, non-200 status, robots.txt
                disallow, non-text content, or no extractable text. The
                ``reason`` attribute tells these apart.
        """
        url = validate_url(url)
        try:
            async with asyncio.timeout(self.timeout):
                if self.respect_robots and not await self._allowed_by_robots(url):
                    raise FetchFailure(
                        f"{url} is disallowed by robots.txt",
                        FetchFailureReason.DISALLOWED,
                        user_message="This site does not allow automated access to that page.",
                    )
                response = await self._client.get(url, headers={"User-Agent": self.user_agent})
        except TimeoutError as exc:
            raise FetchFailure(
                f"Timed out fetching {url}", FetchFailureReason.TIMEOUT,
                user_message="The web page took too long to respond.",
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(
                f"Network error fetching {url}: {exc}", FetchFailureReason.NETWORK,
            ) from exc

        if response.status_code != 200:
            raise FetchFailure(
                f"{url} returned HTTP {response.status_code}",
                FetchFailureReason.HTTP_STATUS,
                status_code=response.status_code,
                user_message=f"The web page returned HTTP {response.status_code}.",
            )

        content_type = response.headers.get("content-type", "text/html").split(";")[0].strip()
        if content_type not in _TEXT_CONTENT_TYPES:
            raise FetchFailure(
                f"{url} has unsupported content type {content_type!r}",
                FetchFailureReason.UNSUPPORTED_CONTENT,
                user_message="The URL does not point to a web page.",
            )

        if content_type == "text/plain":
            title, text = "", _normalize_whitespace(response.text)
        else:
            title, text = extract_main_text(response.text)

        if not text:
            raise FetchFailure(
                f"{url} has no extractable text",
                FetchFailureReason.EMPTY_CONTENT,
                user_message="The web page has no readable text content.",
            )

        logger.info("Fetched %s (%d chars, title=%r)", url, len(text), title[:60])
        return LoadResult(
            segments=[Segment(text=text)],
            name=url,
            kind=SourceKind.WEB_PAGE,
            size_bytes=len(response.content),
        )

    async def _allowed_by_robots(self, url: str) -> bool:
        parts = urlsplit(url)
        robots_url = f"{parts.scheme}://{parts.netloc}/robots.txt"
        try:
            response = await self._client.get(robots_url, headers={"User-Agent": self.user_agent})
        except httpx.HTTPError:
            logger.debug("robots.txt unreachable for %s; assuming allowed", parts.netloc)
            return True

        if response.status_code in (401, 403):
            return False
        if response.status_code != 200:
            return True

        parser = RobotFileParser()
        parser.parse(response.text.splitlines())
        return parser.can_fetch(self.user_agent, url)
