"""
Evidence Seeder
Runs a fixed set of tool calls derived from the input URLs before the model's
first turn, so every run starts with some evidence.
"""
import asyncio
import json
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

from .logging import seeder_logger
from .urls import extract_linkedin_slug, extract_x_username
from ..errors import UpstreamError
from ..providers.base import AssistantMessage, Message, ToolCall, ToolMessage
from ..tools.base import ToolResult
from ..tools.catalog import ToolName
from ..tools.models import SearchResult, SocialPost
from ..tools.web_search import WebSearchTool
from ..tools.x_search import XKeywordSearchTool

SEED_WEB_CALL_ID = "seed_web_search"
SEED_X_CALL_ID = "seed_x_search"

T = TypeVar("T")


def dedupe_by_link(items: Sequence[T]) -> List[T]:
    """Keep the first item per non-empty ``link``; items without a link are kept."""
    seen = set()
    result = []
    for item in items:
        link = getattr(item, "link", None)
        if link:
            if link in seen:
                continue
            seen.add(link)
        result.append(item)
    return result


def linkedin_queries(linkedin_url: Optional[str], slug: Optional[str]) -> List[str]:
    """Web queries scoped to the LinkedIn profile."""
    if slug:
        return [f"site:linkedin.com/in/{slug}", f'"{slug}" linkedin']
    if linkedin_url:
        return [f"site:linkedin.com/in {linkedin_url}"]
    return []


@dataclass
class SeedResult:
    """Evidence gathered before the agent loop starts."""
    x_handle: Optional[str] = None
    linkedin_slug: Optional[str] = None
    x_query: Optional[str] = None
    web_queries: List[str] = field(default_factory=list)
    x_posts: List[SocialPost] = field(default_factory=list)
    web_results: List[SearchResult] = field(default_factory=list)

    def to_messages(self, x_limit: int, web_count: int) -> List[Message]:
        """
        Seed evidence as an assistant tool-call message plus its tool results.

        Empty results are left out; with nothing to inject the list is empty.
        The web call lists every query that fed the merged results.
        """
        calls = []
        results = []
        if self.web_results:
            calls.append(ToolCall(
                id=SEED_WEB_CALL_ID,
                name=ToolName.WEB_SEARCH.value,
                arguments=json.dumps({"query": " OR ".join(self.web_queries), "num_results": web_count}),
            ))
            results.append(ToolMessage(
                tool_call_id=SEED_WEB_CALL_ID,
                name=ToolName.WEB_SEARCH.value,
                content=ToolResult.from_data(self.web_results).output,
            ))
        if self.x_posts:
            calls.append(ToolCall(
                id=SEED_X_CALL_ID,
                name=ToolName.X_KEYWORD_SEARCH.value,
                arguments=json.dumps({"query": self.x_query, "limit": x_limit, "mode": "Latest"}),
            ))
            results.append(ToolMessage(
                tool_call_id=SEED_X_CALL_ID,
                name=ToolName.X_KEYWORD_SEARCH.value,
                content=ToolResult.from_data(self.x_posts).output,
            ))
        if not calls:
            return []
        return [AssistantMessage(content=None, tool_calls=calls), *results]


class Seeder:
    """Pre-runs the X timeline and LinkedIn-scoped web searches."""

    def __init__(
        self,
        web_search: WebSearchTool,
        x_search: XKeywordSearchTool,
        x_post_limit: int = 50,
        web_results: int = 10,
        recover_errors: bool = False,
    ):
        self.web_search = web_search
        self.x_search = x_search
        self.x_post_limit = x_post_limit
        self.web_results = web_results
        self.recover_errors = recover_errors
        self.log = seeder_logger()

    async def _seed_x(self, query: Optional[str]) -> List[SocialPost]:
        if not query:
            return []
        try:
            return await self.x_search.search(query, self.x_post_limit, "Latest")
        except UpstreamError as e:
            if not self.recover_errors:
                raise
            self.log.warning(f"X seed failed, continuing without it: {e}")
            return []

    async def _seed_web(self, queries: List[str]) -> List[SearchResult]:
        if not queries:
            return []
        batches = await asyncio.gather(
            *(self.web_search.search(q, self.web_results) for q in queries),
            return_exceptions=True,
        )
        merged: List[SearchResult] = []
        for query, batch in zip(queries, batches):
            if isinstance(batch, BaseException):
                if not self.recover_errors or not isinstance(batch, UpstreamError):
                    raise batch
                self.log.warning(f"Web seed '{query}' failed, continuing without it: {batch}")
                continue
            merged.extend(batch)
        return dedupe_by_link(merged)

    async def seed(self, linkedin_url: Optional[str], x_url: Optional[str]) -> SeedResult:
        handle = extract_x_username(x_url)
        slug = extract_linkedin_slug(linkedin_url)
        x_query = f"from:{handle} -is:retweet" if handle else None
        web_queries = linkedin_queries(linkedin_url, slug)

        outcomes = await asyncio.gather(
            self._seed_x(x_query),
            self._seed_web(web_queries),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        x_posts, web_results = outcomes

        self.log.info(
            "Seeding complete",
            extra={"fields": {
                "x_handle": handle,
                "linkedin_slug": slug,
                "x_posts": len(x_posts),
                "web_results": len(web_results),
            }},
        )
        return SeedResult(
            x_handle=handle,
            linkedin_slug=slug,
            x_query=x_query,
            web_queries=web_queries,
            x_posts=x_posts,
            web_results=web_results,
        )
