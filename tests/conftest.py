"""
Pytest Configuration and Fixtures
Shared fixtures for all test modules.
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import List

import httpx
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from persona_scout.providers.base import (  # noqa: E402
    AssistantMessage,
    BaseLLMProvider,
    LLMResponse,
    ToolCall,
)
from persona_scout.tools.base import BaseTool  # noqa: E402
from persona_scout.tools.browse_page import BrowsePageArgs  # noqa: E402
from persona_scout.tools.catalog import ToolCatalog, ToolName  # noqa: E402
from persona_scout.tools.web_search import WebSearchArgs  # noqa: E402
from persona_scout.tools.x_search import XKeywordSearchArgs  # noqa: E402

_ARG_MODELS = {
    ToolName.WEB_SEARCH.value: WebSearchArgs,
    ToolName.X_KEYWORD_SEARCH.value: XKeywordSearchArgs,
    ToolName.BROWSE_PAGE.value: BrowsePageArgs,
}


class ScriptedProvider(BaseLLMProvider):
    """LLM stand-in that replays canned assistant messages and records every call."""

    def __init__(self, responses: List[AssistantMessage], repeat_last: bool = False):
        self._responses = list(responses)
        self._repeat_last = repeat_last
        self.calls: List[dict] = []

    @property
    def name(self) -> str:
        return "scripted"

    @property
    def model(self) -> str:
        return "scripted-model"

    async def generate(self, messages, tools=None, temperature=None, max_tokens=None) -> LLMResponse:
        self.calls.append({"messages": list(messages), "tools": tools})
        if len(self._responses) > 1 or not self._repeat_last:
            message = self._responses.pop(0)
        else:
            message = self._responses[0]
        return LLMResponse(message=message)


class StubTool(BaseTool):
    """Catalog entry that records its arguments and returns canned data or raises."""

    def __init__(self, tool_name: str, result=None, error: Exception = None, delay: float = 0.0):
        self._name = tool_name
        self.result = result if result is not None else []
        self.error = error
        self.delay = delay
        self.calls: List[dict] = []
        self.args_model = _ARG_MODELS[tool_name]

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"stub {self._name}"

    @property
    def parameters(self) -> dict:
        return self.args_model.model_json_schema()

    async def run(self, args):
        self.calls.append(args.model_dump())
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def stub_catalog(**overrides) -> ToolCatalog:
    """Catalog of StubTools; pass ``web_search=StubTool(...)`` etc. to customize."""
    tools = {}
    for tool_name in ToolName:
        tools[tool_name] = overrides.get(tool_name.value) or StubTool(tool_name.value)
    return ToolCatalog(tools)


def tool_call(call_id: str, name: str, **arguments) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=json.dumps(arguments))


def final_answer(persona: dict) -> AssistantMessage:
    return AssistantMessage(content=json.dumps(persona))


@pytest.fixture(scope="session", autouse=True)
def quiet_logging(tmp_path_factory):
    """Send log files to a temp dir and keep console output plain."""
    from persona_scout.core.logging import configure_logging

    configure_logging(
        log_dir=str(tmp_path_factory.mktemp("logs")),
        log_level="DEBUG",
        console_colors=False,
    )


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Retries and rate-limit waits happen instantly in tests."""
    from persona_scout.config import config

    monkeypatch.setattr(config.tools, "retry_backoff_seconds", 0.0)
    monkeypatch.setattr(config.tools, "rate_limit_backoff_seconds", 0.0)
    monkeypatch.setattr(config.tools, "render_url", None)
    monkeypatch.setattr(config.tools, "pdf_extractor_url", None)


@pytest.fixture
def config():
    """Return the service configuration."""
    from persona_scout.config import config
    return config


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


X_USER = {"id": "42", "username": "jdoe", "name": "Jane Doe"}
X_TIMELINE = {
    "data": [{"id": "1", "text": "hello world", "conversation_id": "1", "author_id": "42"}],
    "includes": {"users": [X_USER]},
}


def _x_handler(request):
    if request.url.path.endswith("/users/by/username/jdoe"):
        return json_response({"data": X_USER})
    if request.url.path.endswith("/users/42/tweets"):
        return json_response(X_TIMELINE)
    return json_response({"data": []})


def _web_handler(request):
    return json_response({"results": [
        {"title": "Jane Doe | LinkedIn", "url": "https://linkedin.com/in/jane-doe", "text": "CTO"},
    ]})


def mock_catalog() -> ToolCatalog:
    """Real tools against canned X and search API responses."""
    from persona_scout.tools.catalog import create_default_catalog
    from persona_scout.tools.web_search import WebSearchTool
    from persona_scout.tools.x_search import XKeywordSearchTool

    return create_default_catalog(
        web_search=WebSearchTool(api_key="k", transport=httpx.MockTransport(_web_handler)),
        x_keyword_search=XKeywordSearchTool(bearer_token="t", transport=httpx.MockTransport(_x_handler)),
    )
