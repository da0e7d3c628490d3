"""
X Keyword Search Tool
Official X API v2. ``from:<handle>`` queries read the user's timeline
(replies included); other queries use recent search.
"""
from typing import Dict, Any, Optional, List, Literal
import asyncio
import os
import re
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .base import BaseTool
from .fetch import make_client, request_with_retries
from .models import SocialPost
from ..config import config
from ..core.logging import tool_logger
from ..errors import UpstreamError

FROM_HANDLE_PATTERN = re.compile(r"from:([A-Za-z0-9_]{1,15})")
RETWEET_EXCLUSION_TOKENS = ("-is:retweet", "exclude:retweets")

# Accepted range of max_results on the timeline and recent-search endpoints
API_MIN_RESULTS = 5
API_MAX_RESULTS = 100

TWEET_FIELDS = "created_at,conversation_id,public_metrics,author_id,referenced_tweets"
USER_FIELDS = "username,name,description,location,verified"
LOOKUP_USER_FIELDS = "name,username,description,location,verified,created_at,public_metrics,url"


def _get_bearer_token() -> Optional[str]:
    return config.tools.x_bearer_token or os.environ.get("X_BEARER_TOKEN")


def parse_from_handle(query: str) -> Optional[str]:
    """Return the handle of the first ``from:`` clause, if any."""
    match = FROM_HANDLE_PATTERN.search(query)
    return match.group(1) if match else None


def excludes_retweets(query: str) -> bool:
    return any(token in query for token in RETWEET_EXCLUSION_TOKENS)


def map_tweets_to_posts(
    tweets: List[Dict[str, Any]],
    users: Optional[List[Dict[str, Any]]],
) -> List[SocialPost]:
    """Normalize API tweets; a post is a reply when its conversation id differs from its id."""
    users_by_id = {u.get("id"): u for u in (users or []) if isinstance(u, dict)}
    posts = []
    for tweet in tweets or []:
        user = users_by_id.get(tweet.get("author_id")) or {}
        username = user.get("username")
        conversation_id = tweet.get("conversation_id")
        posts.append(SocialPost(
            text=tweet.get("text") or "",
            date=tweet.get("created_at") or "",
            author=username,
            author_name=user.get("name"),
            author_bio=user.get("description"),
            author_location=user.get("location"),
            reply=bool(conversation_id and conversation_id != tweet.get("id")),
            metrics=tweet.get("public_metrics"),
            link=f"https://x.com/{username}/status/{tweet.get('id')}" if username else None,
        ))
    return posts


class XApiClient:
    """Thin X API v2 reader with bounded rate-limit retries."""

    def __init__(self, client: httpx.AsyncClient, bearer_token: str):
        self.client = client
        self.bearer_token = bearer_token
        self.base_url = config.tools.x_api_base.rstrip("/")
        self.log = tool_logger().child("x")

    async def get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        GET an endpoint and decode the JSON body.

        HTTP 429 is retried ``rate_limit_retries`` times after a fixed backoff.

        Raises:
            UpstreamError: non-success status (including a repeated 429) or non-JSON body
        """
        url = f"{self.base_url}{path}"
        retries_left = config.tools.rate_limit_retries
        while True:
            response = await request_with_retries(
                self.client,
                "GET",
                url,
                timeout_seconds=config.tools.timeout_seconds,
                max_retries=config.tools.max_retries,
                backoff_seconds=config.tools.retry_backoff_seconds,
                params=params,
                headers={"Authorization": f"Bearer {self.bearer_token}"},
            )
            if response.status_code == 429 and retries_left > 0:
                retries_left -= 1
                self.log.warning(f"Rate limited on {path}, retrying once")
                await asyncio.sleep(config.tools.rate_limit_backoff_seconds)
                continue
            break

        if not response.is_success:
            raise UpstreamError("X API error", status=response.status_code, body=response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("X API returned non-JSON", status=response.status_code, body=response.text) from e
        if not isinstance(data, dict):
            raise UpstreamError("X API returned an unexpected payload", status=response.status_code, body=response.text)
        return data

    async def resolve_user(self, username: str) -> Dict[str, Any]:
        data = await self.get_json(
            f"/users/by/username/{quote(username)}",
            {"user.fields": LOOKUP_USER_FIELDS},
        )
        user = data.get("data") or {}
        if not user.get("id"):
            raise UpstreamError(f"X API: could not resolve user id for @{username}")
        return user

    async def user_timeline(self, username: str, limit: int, exclude_retweets: bool) -> List[SocialPost]:
        """Reverse-chronological timeline; replies are never excluded."""
        user = await self.resolve_user(username)
        params = {
            "max_results": str(_clamp(limit)),
            "tweet.fields": TWEET_FIELDS,
            "expansions": "author_id",
            "user.fields": USER_FIELDS,
        }
        if exclude_retweets:
            params["exclude"] = "retweets"

        data = await self.get_json(f"/users/{user['id']}/tweets", params)
        users = (data.get("includes") or {}).get("users") or [user]
        return map_tweets_to_posts(data.get("data") or [], users)

    async def recent_search(self, query: str, limit: int, mode: str) -> List[SocialPost]:
        params = {
            "query": query,
            "max_results": str(_clamp(limit)),
            "tweet.fields": TWEET_FIELDS,
            "expansions": "author_id",
            "user.fields": USER_FIELDS,
        }
        if mode == "Latest":
            params["sort_order"] = "recency"

        data = await self.get_json("/tweets/search/recent", params)
        return map_tweets_to_posts(data.get("data") or [], (data.get("includes") or {}).get("users"))


def _clamp(limit: int) -> int:
    return max(API_MIN_RESULTS, min(limit, API_MAX_RESULTS))


class XKeywordSearchArgs(BaseModel):
    model_config = ConfigDict(strict=True)

    query: str = Field(min_length=1)
    limit: int = 20
    mode: Literal["Top", "Latest"] = "Latest"


class XKeywordSearchTool(BaseTool):
    """Search X posts or read a user's timeline."""

    args_model = XKeywordSearchArgs

    def __init__(
        self,
        bearer_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bearer_token = bearer_token
        self.transport = transport

    @property
    def name(self) -> str:
        return "x_keyword_search"

    @property
    def description(self) -> str:
        return (
            "Official X API search. Use from:username queries to read a user's "
            "timeline (replies included; add -is:retweet to drop retweets). "
            "Other queries search recent posts."
        )

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string"},
                "limit": {"type": "integer", "default": 20},
                "mode": {"type": "string", "enum": ["Top", "Latest"], "default": "Latest"},
            },
            "required": ["query"]
        }

    async def search(self, query: str, limit: int = 20, mode: str = "Latest") -> List[SocialPost]:
        bearer = self.bearer_token or _get_bearer_token()
        if not bearer:
            raise UpstreamError("Missing X_BEARER_TOKEN")

        limit = min(max(1, limit), API_MAX_RESULTS)
        handle = parse_from_handle(query)

        async with make_client(config.tools.timeout_seconds, self.transport) as client:
            api = XApiClient(client, bearer)
            if handle:
                posts = await api.user_timeline(handle, limit, excludes_retweets(query))
            else:
                posts = await api.recent_search(query, limit, mode)

        tool_logger().info(f"x_keyword_search '{query}' returned {len(posts)} posts")
        return posts[:limit]

    async def run(self, args: XKeywordSearchArgs) -> List[SocialPost]:
        return await self.search(args.query, args.limit, args.mode)
