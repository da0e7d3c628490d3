"""
Browse Page Tool
Fetch a URL and return its readable text. PDFs go to an extraction backend,
HTML is stripped to text locally, thin pages can go through a renderer.
"""
from typing import Dict, Any, Optional, Tuple
from urllib.parse import urlparse
import ipaddress
import os
import re

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

from .base import BaseTool
from .fetch import make_client, request_with_retries
from .models import PageContent
from ..config import config
from ..core.logging import tool_logger
from ..errors import UpstreamError

PRIVATE_IP_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

BLOCKED_HOSTNAMES = {
    "localhost",
    "0.0.0.0",
    "metadata.google.internal",
}

_WHITESPACE = re.compile(r"\s+")


def is_private_ip(host: str) -> bool:
    """True for literal IPs inside a private, loopback or link-local range."""
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return any(ip in network for network in PRIVATE_IP_RANGES)


def check_url(url: str) -> Tuple[bool, str]:
    """
    Check that a model-supplied URL is fetchable.

    Returns:
        Tuple of (is_safe, reason)
    """
    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        return False, "Malformed URL"
    if parsed.scheme not in ("http", "https"):
        return False, f"Invalid scheme: {parsed.scheme or '(none)'}"

    if not hostname:
        return False, "Missing hostname"
    if hostname in BLOCKED_HOSTNAMES:
        return False, f"Blocked hostname: {hostname}"
    if is_private_ip(hostname):
        return False, f"Private IP address blocked: {hostname}"
    return True, "OK"


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def html_to_text(html: str) -> str:
    """Drop script/style blocks and all markup, collapse whitespace."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return collapse_whitespace(soup.get_text(" "))


def looks_like_pdf_url(url: str) -> bool:
    return urlparse(url).path.lower().endswith(".pdf")


def truncate(text: str, max_chars: int) -> Tuple[str, bool]:
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars], True


class BrowsePageArgs(BaseModel):
    model_config = ConfigDict(strict=True)

    url: str = Field(min_length=1)
    instructions: str = ""


class BrowsePageTool(BaseTool):
    """Read the text of a web page or PDF."""

    args_model = BrowsePageArgs

    def __init__(
        self,
        max_chars: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_chars = max_chars or config.tools.page_max_chars
        self.transport = transport
        self.log = tool_logger().child("browse")

    @property
    def name(self) -> str:
        return "browse_page"

    @property
    def description(self) -> str:
        return (
            "Fetch a web page or PDF and return its readable text "
            f"(truncated to {self.max_chars} characters). Use it to read personal "
            "sites, articles, talks and CVs found through web_search."
        )

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The URL to fetch (http or https)"
                },
                "instructions": {
                    "type": "string",
                    "description": "What to look for on the page"
                }
            },
            "required": ["url"]
        }

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
        return await request_with_retries(
            client,
            method,
            url,
            timeout_seconds=config.tools.timeout_seconds,
            max_retries=config.tools.max_retries,
            backoff_seconds=config.tools.retry_backoff_seconds,
            **kwargs
        )

    async def _is_pdf(self, client: httpx.AsyncClient, url: str) -> bool:
        if looks_like_pdf_url(url):
            return True
        try:
            response = await self._request(client, "HEAD", url)
        except UpstreamError as e:
            # The GET that follows reports the real failure
            self.log.warning(f"HEAD request failed for {url}: {e}")
            return False
        return "application/pdf" in response.headers.get("content-type", "").lower()

    async def _extract_pdf(self, client: httpx.AsyncClient, url: str) -> str:
        base_url = config.tools.pdf_extractor_url or os.environ.get("PDF_EXTRACTOR_URL")
        if not base_url:
            raise UpstreamError("PDF extraction backend not configured. Set PDF_EXTRACTOR_URL.")

        response = await self._request(client, "POST", f"{base_url.rstrip('/')}/extract", json={"url": url})
        if not response.is_success:
            raise UpstreamError("PDF extractor error", status=response.status_code, body=response.text)
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("PDF extractor returned non-JSON", status=response.status_code, body=response.text) from e
        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise UpstreamError("PDF extractor returned no text", status=response.status_code, body=response.text)
        return collapse_whitespace(text)

    async def _fetch_html(self, client: httpx.AsyncClient, url: str) -> str:
        response = await self._request(client, "GET", url)
        if not response.is_success:
            raise UpstreamError(f"Fetch error for {url}", status=response.status_code, body=response.text)
        return html_to_text(response.text)

    async def _render(self, client: httpx.AsyncClient, url: str) -> Optional[str]:
        """Fetch through the rendering service, None when unavailable."""
        render_url = config.tools.render_url or os.environ.get("RENDER_URL")
        if not render_url:
            return None
        try:
            response = await self._request(client, "GET", f"{render_url.rstrip('/')}/{url}")
        except UpstreamError as e:
            self.log.warning(f"Renderer failed for {url}: {e}")
            return None
        if not response.is_success:
            self.log.warning(f"Renderer returned {response.status_code} for {url}")
            return None
        return collapse_whitespace(response.text)

    async def browse(self, url: str, instructions: str = "") -> PageContent:
        is_safe, reason = check_url(url)
        if not is_safe:
            raise UpstreamError(f"URL blocked: {reason}")

        async with make_client(config.tools.timeout_seconds, self.transport) as client:
            if await self._is_pdf(client, url):
                content_type = "pdf"
                text = await self._extract_pdf(client, url)
            else:
                content_type = "html"
                text = await self._fetch_html(client, url)
                if len(text) < config.tools.render_min_chars:
                    rendered = await self._render(client, url)
                    if rendered and len(rendered) > len(text):
                        text = rendered

        text, truncated = truncate(text, self.max_chars)
        self.log.info(f"Fetched {url} ({content_type}, {len(text)} chars)")
        return PageContent(
            text=text,
            source_url=url,
            content_type=content_type,
            truncated=truncated,
            instructions=instructions,
        )

    async def run(self, args: BrowsePageArgs) -> PageContent:
        return await self.browse(args.url, args.instructions)
