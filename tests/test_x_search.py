"""
Tests for the X keyword search tool.
"""
import httpx
import pytest

from persona_scout.errors import UpstreamError
from persona_scout.tools.x_search import (
    XKeywordSearchTool,
    excludes_retweets,
    map_tweets_to_posts,
    parse_from_handle,
)

from conftest import json_response

USER = {"id": "42", "username": "jdoe", "name": "Jane Doe", "description": "Builder", "location": "NYC"}

TWEETS = {
    "data": [
        {"id": "1", "text": "shipping", "created_at": "2024-01-01T00:00:00Z",
         "conversation_id": "1", "author_id": "42", "public_metrics": {"like_count": 3}},
        {"id": "2", "text": "@bob agreed", "created_at": "2024-01-02T00:00:00Z",
         "conversation_id": "99", "author_id": "42"},
    ],
    "includes": {"users": [USER]},
}


class Recorder:
    """MockTransport handler routing by path and recording every request."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        route = self.routes[request.url.path]
        if isinstance(route, list):
            return route.pop(0)
        return route

    def paths(self):
        return [r.url.path for r in self.requests]


class TestQueryParsing:

    def test_from_handle(self):
        assert parse_from_handle("from:jdoe -is:retweet") == "jdoe"
        assert parse_from_handle("ai safety") is None

    def test_retweet_exclusion(self):
        assert excludes_retweets("from:jdoe -is:retweet")
        assert excludes_retweets("from:jdoe exclude:retweets")
        assert not excludes_retweets("from:jdoe")


class TestMapping:

    def test_reply_flag_and_link(self):
        posts = map_tweets_to_posts(TWEETS["data"], [USER])
        assert [p.reply for p in posts] == [False, True]
        assert posts[0].link == "https://x.com/jdoe/status/1"
        assert posts[0].author_bio == "Builder"
        assert posts[0].metrics == {"like_count": 3}

    def test_unknown_author_has_no_link(self):
        (post,) = map_tweets_to_posts([{"id": "7", "text": "hi", "author_id": "nope"}], [])
        assert post.author is None
        assert post.link is None


class TestTimeline:

    @pytest.mark.asyncio
    async def test_from_query_reads_timeline(self):
        recorder = Recorder({
            "/2/users/by/username/jdoe": json_response({"data": USER}),
            "/2/users/42/tweets": json_response(TWEETS),
        })
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))

        posts = await tool.search("from:jdoe -is:retweet", 50, "Latest")

        assert recorder.paths() == ["/2/users/by/username/jdoe", "/2/users/42/tweets"]
        timeline = recorder.requests[1]
        assert timeline.url.params["exclude"] == "retweets"
        assert timeline.url.params["max_results"] == "50"
        assert timeline.headers["Authorization"] == "Bearer t"
        assert [p.text for p in posts] == ["shipping", "@bob agreed"]
        assert posts[1].reply

    @pytest.mark.asyncio
    async def test_retweets_kept_without_exclusion(self):
        recorder = Recorder({
            "/2/users/by/username/jdoe": json_response({"data": USER}),
            "/2/users/42/tweets": json_response(TWEETS),
        })
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))

        await tool.search("from:jdoe", 3)

        timeline = recorder.requests[1]
        assert "exclude" not in timeline.url.params
        # Below the API minimum, the request is clamped up and the result cut down
        assert timeline.url.params["max_results"] == "5"

    @pytest.mark.asyncio
    async def test_limit_truncates_result(self):
        recorder = Recorder({
            "/2/users/by/username/jdoe": json_response({"data": USER}),
            "/2/users/42/tweets": json_response(TWEETS),
        })
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))
        assert len(await tool.search("from:jdoe", 1)) == 1

    @pytest.mark.asyncio
    async def test_unresolvable_user(self):
        recorder = Recorder({"/2/users/by/username/ghost": json_response({"errors": [{"title": "Not Found"}]})})
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))
        with pytest.raises(UpstreamError, match="could not resolve"):
            await tool.search("from:ghost")


class TestRecentSearch:

    @pytest.mark.asyncio
    async def test_latest_sorts_by_recency(self):
        recorder = Recorder({"/2/tweets/search/recent": json_response(TWEETS)})
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))

        posts = await tool.search("acme robotics", 10, "Latest")

        request = recorder.requests[0]
        assert request.url.params["query"] == "acme robotics"
        assert request.url.params["sort_order"] == "recency"
        assert len(posts) == 2

    @pytest.mark.asyncio
    async def test_top_uses_default_order(self):
        recorder = Recorder({"/2/tweets/search/recent": json_response({"meta": {"result_count": 0}})})
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))

        posts = await tool.search("acme", 10, "Top")

        assert "sort_order" not in recorder.requests[0].url.params
        assert posts == []


class TestRateLimits:

    @pytest.mark.asyncio
    async def test_429_retried_once(self):
        recorder = Recorder({"/2/tweets/search/recent": [
            httpx.Response(429, text="Too Many Requests"),
            json_response(TWEETS),
        ]})
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))

        posts = await tool.search("acme")

        assert len(recorder.requests) == 2
        assert len(posts) == 2

    @pytest.mark.asyncio
    async def test_second_429_fails(self):
        recorder = Recorder({"/2/tweets/search/recent": [
            httpx.Response(429, text="Too Many Requests"),
            httpx.Response(429, text="Too Many Requests"),
            json_response(TWEETS),
        ]})
        tool = XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(recorder))

        with pytest.raises(UpstreamError) as exc_info:
            await tool.search("acme")

        assert exc_info.value.status == 429
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_missing_token(self, monkeypatch, config):
        monkeypatch.setattr(config.tools, "x_bearer_token", None)
        monkeypatch.delenv("X_BEARER_TOKEN", raising=False)
        tool = XKeywordSearchTool(transport=httpx.MockTransport(lambda r: json_response({})))
        with pytest.raises(UpstreamError, match="X_BEARER_TOKEN"):
            await tool.search("acme")
