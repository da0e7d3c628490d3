"""
Web Search Tool
Searches the public web through an Exa-compatible search API
(POST ``{query, numResults}`` → ``{results: [...]}``).
"""
from typing import Dict, Any, Optional, List
import os
import httpx
from pydantic import BaseModel, ConfigDict, Field

from .base import BaseTool
from .fetch import make_client, request_with_retries
from .models import SearchResult
from ..config import config
from ..core.logging import tool_logger
from ..errors import UpstreamError

MAX_RESULTS = 20
SNIPPET_CHARS = 400


def _get_api_key() -> Optional[str]:
    """API key from config, falling back to the environment."""
    return config.tools.search_api_key or os.environ.get("EXA_API_KEY")


def _snippet(item: Dict[str, Any]) -> str:
    highlights = item.get("highlights")
    if isinstance(highlights, list) and highlights:
        return " ".join(str(h) for h in highlights)[:SNIPPET_CHARS]
    for key in ("summary", "text"):
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:SNIPPET_CHARS]
    return ""


async def search_exa(
    client: httpx.AsyncClient,
    query: str,
    num_results: int,
    api_key: str,
) -> List[SearchResult]:
    """
    Run one search against the provider.

    Args:
        client: HTTP client
        query: Search query, ``site:`` operators allowed
        num_results: Number of results wanted (clamped to 20)
        api_key: Provider API key

    Raises:
        UpstreamError: non-success status or unparseable body
    """
    count = min(max(1, num_results), MAX_RESULTS)
    response = await request_with_retries(
        client,
        "POST",
        config.tools.search_url,
        timeout_seconds=config.tools.timeout_seconds,
        max_retries=config.tools.max_retries,
        backoff_seconds=config.tools.retry_backoff_seconds,
        headers={"x-api-key": api_key, "Content-Type": "application/json"},
        json={
            "query": query,
            "numResults": count,
            "contents": {"text": {"maxCharacters": SNIPPET_CHARS}},
        },
    )

    if not response.is_success:
        raise UpstreamError("Search API error", status=response.status_code, body=response.text)

    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamError(
            "Search API returned non-JSON", status=response.status_code, body=response.text
        ) from e

    items = data.get("results") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise UpstreamError(
            "Search API returned an unexpected payload", status=response.status_code, body=response.text
        )

    return [
        SearchResult(
            title=item.get("title") or "",
            link=item.get("url") or "",
            snippet=_snippet(item),
        )
        for item in items
        if isinstance(item, dict)
    ][:count]


class WebSearchArgs(BaseModel):
    model_config = ConfigDict(strict=True)

    query: str = Field(min_length=1)
    num_results: int = 10


class WebSearchTool(BaseTool):
    """Search the public web."""

    args_model = WebSearchArgs

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.transport = transport

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return (
            "Search the public web for information about the person. "
            "Use site: operators when possible (e.g. site:linkedin.com/in/<slug>). "
            "Returns a list of {title, link, snippet}."
        )

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query"
                },
                "num_results": {
                    "type": "integer",
                    "default": 10,
                    "description": f"Number of results (max {MAX_RESULTS})"
                }
            },
            "required": ["query"]
        }

    async def search(self, query: str, num_results: int = 10) -> List[SearchResult]:
        """Search with a fresh client."""
        api_key = self.api_key or _get_api_key()
        if not api_key:
            raise UpstreamError("Search API key not configured. Set EXA_API_KEY.")

        async with make_client(config.tools.timeout_seconds, self.transport) as client:
            results = await search_exa(client, query, num_results, api_key)

        tool_logger().info(f"web_search '{query}' returned {len(results)} results")
        return results

    async def run(self, args: WebSearchArgs) -> List[SearchResult]:
        return await self.search(args.query, args.num_results)
